from gitobj.errors import *  # noqa: F403
from gitobj.models import *  # noqa: F403
