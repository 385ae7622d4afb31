# Models package - database tables
from adstudio.models.user import User
from adstudio.models.brand import Brand
from adstudio.models.campaign import Campaign
from adstudio.models.activity import ActivityLog
