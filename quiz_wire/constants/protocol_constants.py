"""Wire protocol constants for the HTTP-shaped message envelope."""

HTTP_VERSION: str = "HTTP/1.1"
STATUS_CODE: int = 200
STATUS_REASON: str = "OK"
ENCODING: str = "utf-8"

HEADER_CONTENT_LENGTH: str = "Content-Length"
HEADER_TYPE: str = "X-Type"

METHOD_POST: str = "POST"
PATH_JOIN: str = "/join"
PATH_ANSWER: str = "/answer"

TYPE_WELCOME: str = "WELCOME"
TYPE_WAIT: str = "WAIT"
TYPE_QUESTION: str = "QUESTION"
TYPE_RESULT: str = "RESULT"
TYPE_RANKING: str = "RANKING"
TYPE_NEXT: str = "NEXT"
TYPE_END: str = "END"

TYPE_TAGS: frozenset[str] = frozenset(
    {TYPE_WELCOME, TYPE_WAIT, TYPE_QUESTION, TYPE_RESULT, TYPE_RANKING, TYPE_NEXT, TYPE_END}
)

MAX_LINE_BYTES: int = 8 * 1024
MAX_BODY_BYTES: int = 64 * 1024

WELCOME_TEXT: str = "Connected to the quiz! Send POST /join with your name"
WAITING_FOR_START_TEXT: str = "Waiting for the game to start..."
ANSWER_RECEIVED_TEXT: str = "Answer received. Waiting for the other players..."
ALREADY_ANSWERED_TEXT: str = "Already answered this round."
ALREADY_JOINED_TEXT: str = "Already joined."
NEXT_QUESTION_TEXT: str = "Next question..."
