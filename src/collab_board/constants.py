STATE_DIR_NAME = ".collab_board"
CONFIG_FILE = "config.yaml"
DATA_FILE = "data.json"

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 5765
DEFAULT_LOG_LEVEL = "INFO"

LOCK_TIMEOUT_SECONDS = 5 * 60
DRAG_TIMEOUT_SECONDS = 30
SWEEP_INTERVAL_SECONDS = 30
FILE_LOCK_TIMEOUT_SECONDS = 10

NAME_MAX_LENGTH = 20
TITLE_MAX_LENGTH = 40
DESCRIPTION_MAX_LENGTH = 200

LIST_TODO = "todo"
LIST_DONE = "done"
LIST_IGNORED = "ignored"
LIST_NAMES = (LIST_TODO, LIST_DONE, LIST_IGNORED)

AVATAR_COLORS = (
    "#FF6B6B",
    "#4ECDC4",
    "#45B7D1",
    "#96CEB4",
    "#FECA57",
    "#FF9FF3",
    "#54A0FF",
)
AVATAR_SHAPES = ("circle", "square")
