# Import all models so Base.metadata.create_all() can see them.

from ecoreport.models.user import User  # noqa: F401
from ecoreport.models.report import Report, CollectedWaste  # noqa: F401
from ecoreport.models.points import Reward, PointsTransaction  # noqa: F401
from ecoreport.models.notification import Notification  # noqa: F401
