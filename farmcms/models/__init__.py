from farmcms.models.models import *  # noqa: F401,F403
from farmcms.models.models import __all__  # noqa: F401
