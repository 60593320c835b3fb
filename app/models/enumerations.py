from enum import Enum

class RatingStatus(str, Enum):
    PENDING = "pending"          # Submitted, never rated
    PROCESSING = "processing"    # Orchestration run in flight
    COMPLETED = "completed"      # All four sections rated
    ERROR = "error"              # Fetch, section or save failure

class Section(str, Enum):
    CORE = "core"
    EXPERIENCE = "experience"
    TEAM = "team"
    PRICE = "price"

class FieldKind(str, Enum):
    SCALAR = "scalar"
    DOCUMENT = "document"
