# --- Estados da Conversa ---
ASKING_CONFIRMATION = 1

from .handle_confirmation import handle_confirmation  # noqa: E402
from .handle_initial_message import handle_initial_message  # noqa: E402
