"""
Domain layer: rich models holding the game rules that are independent of
timers, storage and transport.
"""
