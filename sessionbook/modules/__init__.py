"""Domain modules package."""

from sessionbook.modules.availability import models as availability_models  # noqa: F401
from sessionbook.modules.booking import models as booking_models  # noqa: F401
from sessionbook.modules.identity import models as identity_models  # noqa: F401
from sessionbook.modules.notifications import models as notifications_models  # noqa: F401
