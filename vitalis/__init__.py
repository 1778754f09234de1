"""Vitalis: translation and admin service for the fitness portal."""
