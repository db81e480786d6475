"""Domain modules package."""

from app.modules.booking import models as booking_models  # noqa: F401
from app.modules.identity import models as identity_models  # noqa: F401
from app.modules.lessons import models as lessons_models  # noqa: F401
from app.modules.links import models as links_models  # noqa: F401
from app.modules.notifications import models as notifications_models  # noqa: F401
from app.modules.scheduling import models as scheduling_models  # noqa: F401
from app.modules.tutors import models as tutors_models  # noqa: F401
