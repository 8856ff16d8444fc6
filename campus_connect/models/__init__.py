
from .user_model import User
from .token_model import RefreshToken
from .appointment_model import Appointment
from .availability_model import StaffAvailability, StaffAvailabilityException
from .notification_model import Notification
from .post_model import Post, Comment
from .event_model import Event, EventAttendee
from .chat_model import ChatGroup, ChatGroupMember, Message
from .survey_model import Survey, SurveyResponse
from .forum_model import Forum, ForumPost
