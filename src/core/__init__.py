"""Core domain package for courier.

Core holds the message model, route registration, route validation,
authorization and dispatch without any chat-network specific code, keeping
the routing logic portable across adapters.
"""
