"""
HTTP layer: app factory, schemas, routers and error mapping.
"""
