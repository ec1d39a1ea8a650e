"""
delivery_auth

Authentication and authorization shared by the food-delivery services:
principal registration/login, bearer-token verification, role checks and
restaurant-operator approval.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"
