from .drafts import DRAFT_KEY, ConfirmChoice, DraftSnapshot, DraftTracker
from .gateway import (
    GatewayError,
    GatewayUnavailableError,
    HttpReportGateway,
    ReportGateway,
    ReportGroupInfo,
)
from .grid import Direction, GridController, Point, Target, Viewport
from .session import EditorSession, Notification, NotificationLevel, SessionStatus
from .state import AppState, Theme
