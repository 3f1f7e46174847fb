"""Centralized message constants for error messages, log templates, and chat replies."""

from __future__ import annotations


class ErrorMessages:
    """Error messages for exceptions and validation failures."""

    # Session Validation Errors
    INVALID_SESSION_CODE = "Invalid session code: {code!r}"
    SESSION_CODES_EXHAUSTED = "Could not allocate a free session code, try again"

    # Time/Date Validation Errors
    TIMEZONE_REQUIRED_UTC_DATETIME = "UtcDateTime requires a timezone-aware datetime"

    # Settings Validation Errors
    INVALID_DATABASE_URL = "Database URL must start with sqlite://"
    INVALID_LOG_LEVEL = "Invalid log level: {level}. Must be one of {valid_levels}"

    # Persistence Errors
    CORRUPT_SESSION_ROW = "Stored session '{code}' could not be decoded: {error}"

    # Link Errors
    NOT_A_VIDEO_LINK = "Not a YouTube video link: {url}"


class LogTemplates:
    """Log message templates for structured logging.

    Use these with logger.info(), logger.error(), etc. and pass values as parameters
    for proper log formatting and structured logging support.
    """

    # Database Lifecycle
    DATABASE_INITIALIZED = "Database initialized at %s"
    DATABASE_CLOSED = "Database manager closed"
    DATABASE_OPERATION_FAILED = "Database operation '%s' failed: %r"

    # Repository Operations
    SESSION_SAVED = "Saved session %s"
    SESSION_DELETED = "Deleted session %s"
    SESSION_ROW_SKIPPED = "Skipping unreadable stored session %s: %s"

    # Session Store
    STORE_LOADED = "Loaded %d sessions from storage"
    STORE_WRITE_FAILED = "Could not persist session %s, keeping in-memory state: %s"
    STORE_DELETE_FAILED = "Could not delete stored session %s: %s"
    STORE_UNSAVED_ON_CLOSE = "%d sessions still unsaved at shutdown"
    SESSIONS_EXPIRED = "Expired %d idle sessions"

    # Session Registry
    SESSION_CODE_COLLISION = "Session code %s already taken, drawing another"
    SESSION_CREATED = "Created session %s for owner %s"
    SESSION_JOINED = "User %s joined session %s"
    SESSION_LEFT = "User %s left session %s"
    SESSION_ENDED = "Session %s ended by %s"

    # Queue Operations
    QUEUE_ENQUEUED = "Enqueued video '%s' at position %s in session %s"
    QUEUE_ADVANCED = "Advanced past video '%s' in session %s"
    QUEUE_REMOVED = "Removed video '%s' from queue in session %s"
    QUEUE_EXHAUSTED = "Queue exhausted in session %s"

    # Link Resolution
    LINK_RESOLVE_TIMEOUT = "Timed out resolving %s after %ss"
    YTDLP_TITLE_LOOKUP_FAILED = "Could not fetch title for %s: %s"

    # Cast Operations
    CAST_DISCOVERY_TIMEOUT = "Cast discovery timed out after %ss"
    CAST_DEVICE_SET = "Cast device set to '%s' in session %s"
    CAST_DEVICE_UNKNOWN = "Rejected unknown cast device '%s' in session %s"
    CAST_RETIRED = "Moved video '%s' to history in session %s"
    CAST_NO_DEVICE = "No cast device available for session %s"
    CAST_PLAY_TIMEOUT = "Timed out casting '%s' to '%s' in session %s"
    CAST_PLAY_FAILED = "Failed to cast '%s' to '%s' in session %s: %s"
    CAST_SUPERSEDED = "Video '%s' was overtaken by a newer transition in session %s"
    CAST_STARTED = "Casting '%s' to '%s' in session %s"
    CAST_SESSION_GONE = "Video '%s' reached the device after session %s ended"
    CAST_DEVICES_CONFIGURED = "Cast transport configured with %d devices"
    CAST_PLAY_SENT = "Play '%s' on '%s'"

    # Cleanup Operations
    CLEANUP_STARTED = "Cleanup job started"
    CLEANUP_STOPPED = "Cleanup job stopped"
    CLEANUP_ALREADY_RUNNING = "Cleanup job is already running"
    CLEANUP_CYCLE_RUNNING = "Running cleanup cycle"
    CLEANUP_COMPLETED = "Cleanup completed: %d sessions expired, %d unsaved sessions written"
    CLEANUP_CYCLE_FAILED = "Cleanup cycle failed"
    CLEANUP_SESSIONS_FAILED = "Failed to expire idle sessions: %r"
    CLEANUP_FLUSH_FAILED = "Failed to write unsaved sessions: %r"
    CLEANUP_STILL_UNSAVED = "%d sessions are still not saved"

    # Command Dispatch
    COMMAND_RECEIVED = "Command '%s' from user %s"
    COMMAND_UNEXPECTED_ERROR = "Unexpected error handling '%s' from user %s"

    # Application Lifecycle
    APP_STARTING = "Starting karaoke queue in {environment} mode"
    APP_CONTAINER_INITIALIZED = "Container initialized successfully"
    APP_KEYBOARD_INTERRUPT = "Received keyboard interrupt, shutting down..."
    APP_FATAL_ERROR = "Fatal error: %s"
    APP_CONTAINER_SHUTDOWN = "Container shutdown complete"


class ChatMessages:
    """User-facing chat replies.

    These strings are sent back to the chat verbatim. Keep them short.
    """

    # Session lifecycle
    SESSION_CREATED = (
        "Created new karaoke session with code: {code}\n"
        "Share this code with friends to let them join!"
    )
    SESSION_JOINED = "You've joined session: {code}"
    SESSION_ALREADY_JOINED = "You're already in session: {code}"
    SESSION_LEFT = "You've left the session."
    SESSION_ENDED = "Session {code} has ended."
    SESSION_INFO = (
        "Session {code}\n"
        "Owner: {owner}\n"
        "Members: {members}\n"
        "State: {state}\n"
        "Cast device: {device}\n"
        "Queued: {queued}, played: {played}\n"
        "Running for {uptime}"
    )

    # Queue
    ADDED_TO_QUEUE = "Added to queue at position {position}! Type /queue to see current lineup."
    QUEUE_EMPTY = "The queue is empty. Add videos with /add [youtube_url]"
    QUEUE_HEADER = "Current queue:"
    QUEUE_NOTE = " - Note: {note}"
    ITEM_REMOVED = "Removed {title} from the queue."
    ITEM_NOT_QUEUED = "That video is not waiting in the queue."

    # Playback
    NOW_PLAYING = "Now playing on {device}: {title} (added by {submitter})"
    NOTHING_PLAYING = "Nothing is playing."
    QUEUE_FINISHED = "That's the end of the queue. Add more videos with /add [youtube_url]"
    NEXT_SUPERSEDED = "Another /next got there first, so that video went straight to history."
    HISTORY_EMPTY = "Nothing has been played yet."
    HISTORY_HEADER = "Played so far:"
    DEVICES_HEADER = "Cast devices:"
    DEVICES_NONE = "No cast devices found."
    DEVICE_SET = "Cast device set to {device}."

    # Errors
    NOT_IN_SESSION = (
        "You're not in a session. Join one with /join [code] "
        "or start your own with /start-session"
    )
    INVALID_SESSION_CODE = "Invalid session code. Please check and try again."
    MISSING_URL = "Please provide a YouTube URL with /add command."
    MISSING_CODE = "Please provide a session code with /join command."
    MISSING_VIDEO_ID = "Please provide the video id to remove, e.g. /remove dQw4w9WgXcQ"
    MISSING_DEVICE = "Please provide a device name with /set-device command."
    INVALID_LINK = "Please provide a valid YouTube URL."
    LINK_TIMEOUT = "Looking up that link took too long. Please try again."
    DUPLICATE_ITEM = "This video is already in the queue."
    OWNER_ONLY = "Only the session owner can {operation}."
    NO_CAST_DEVICE = "No cast devices found. Use /devices to check, then /set-device [name]."
    UNKNOWN_DEVICE = "There is no cast device called {device}. Use /devices to see the available ones."
    CAST_FAILED = "Couldn't play {title}: {error}. It was dropped from the queue."
    CAST_FAILED_NO_ITEM = "Cast device error: {error}"
    CAPACITY_EXCEEDED = "{error}"
    STORAGE_ERROR = "There was a storage problem. Please try again."
    UNKNOWN_COMMAND = "Unknown command. Type /help to see what I can do."
    UNEXPECTED_ERROR = "Something went wrong. Please try again."
    NOT_SAVED_WARNING = "(Warning: this change could not be saved and may be lost on restart.)"
