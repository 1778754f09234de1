from flask import Blueprint, jsonify, request

from vitalis.fitness import calculate_profile


def create_fitness_blueprint() -> Blueprint:
    bp = Blueprint("fitness", __name__, url_prefix="/api/fitness")

    @bp.route("/calculate", methods=["POST"], endpoint="calculate")
    def calculate():
        return jsonify(calculate_profile(request.get_json(silent=True)))

    return bp
