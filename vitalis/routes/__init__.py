from vitalis.routes.admin import create_admin_blueprint
from vitalis.routes.auth import create_auth_blueprint
from vitalis.routes.fitness import create_fitness_blueprint
from vitalis.routes.i18n import create_i18n_blueprint

__all__ = [
    "create_admin_blueprint",
    "create_auth_blueprint",
    "create_fitness_blueprint",
    "create_i18n_blueprint",
]
