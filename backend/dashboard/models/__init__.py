# Import all models so Base knows about them
from dashboard.models.user import User  # noqa
from dashboard.models.material import Material  # noqa
from dashboard.models.category import Category  # noqa
from dashboard.models.segment import Segment  # noqa
from dashboard.models.user_material import UserMaterial  # noqa
