"""Routing: route registration, pattern matching, and dispatch.

Routes are registered on a RouteCollection during setup and compiled
into an immutable Dispatcher by ``get_dispatcher()``.
"""
