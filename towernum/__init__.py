#
# Numbers far beyond float range, stored as layered hyperoperation heights
#
# (c) The towernum developers 2026.  All rights reserved.
#

from .context import *
from .context import __all__ as _context_all
from .formatter import *
from .formatter import __all__ as _formatter_all
from .hyper import *
from .hyper import __all__ as _hyper_all
from .lambert import BRANCH_POINT, lambertw_of_log
from .layered import *
from .layered import __all__ as _layered_all


__version__ = '0.1.0'

__all__ = _context_all + _layered_all + _hyper_all + _formatter_all + (
    'BRANCH_POINT', 'lambertw_of_log',
)
