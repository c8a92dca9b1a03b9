"""
HTTP layer - blueprints, middlewares and error handlers
"""
