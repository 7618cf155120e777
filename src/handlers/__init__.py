"""Built-in chat handlers shipped with courier.

Each module exposes a module-level ``handler``; plugin modules listed in the
config follow the same convention.
"""

from handlers import authorization
from handlers import help as help_handler

BUILTIN_HANDLERS = (authorization.handler, help_handler.handler)
