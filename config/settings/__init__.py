import os

# DJANGO_ENV picks the settings module; anything but prod/production is local.
_env = os.getenv("DJANGO_ENV", "local").strip().lower()

if _env in ("prod", "production"):
    from .prod import *  # noqa: F401,F403
else:
    from .local import *  # noqa: F401,F403
