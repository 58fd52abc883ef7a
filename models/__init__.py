from models.User import User
from models.Trip import Trip
from models.Destination import Destination
from models.DayPlan import DayPlan
from models.DayPlanDestination import DayPlanDestination
from models.Activity import Activity
from models.TripTag import TripTag
from models.TripLike import TripLike
