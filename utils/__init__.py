from .env import load_project_dotenv  # noqa: F401
from .event_bus import StatusBus  # noqa: F401
from .periodic import PeriodicTask  # noqa: F401
