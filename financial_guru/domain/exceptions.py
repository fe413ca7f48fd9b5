"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class NotFoundError(DomainException):
    """Requested entity does not exist"""

    def __init__(self, entity: str, entity_id: object):
        super().__init__(f"{entity} not found: {entity_id}")
        self.entity = entity
        self.entity_id = entity_id


class InvalidStateError(DomainException):
    """Operation is not allowed in the entity's current state"""

    pass


class StatementParseError(DomainException):
    """Statement file could not be read or parsed"""

    pass


class OllamaUnavailableError(DomainException):
    """Local LLM server is unreachable or returned an error"""

    pass
