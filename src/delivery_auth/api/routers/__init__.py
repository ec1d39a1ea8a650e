"""
delivery_auth.api.routers

HTTP routers: public auth endpoints, admin review endpoints, health probes.
"""
