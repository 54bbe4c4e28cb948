"""
Domain layer: entities, business-rule services and exceptions.
"""
