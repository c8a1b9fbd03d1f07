"""
Domain Errors
Typed failures returned to the API layer, never retried by the core
"""


class CampaignCoreError(Exception):
    """Base class for call/campaign state machine failures."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class NotFound(CampaignCoreError):
    """Referenced campaign, lead or call log does not exist."""

    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


class InvalidTransition(CampaignCoreError):
    """A state-machine edge that is not permitted."""

    def __init__(self, entity: str, current: str, target: str):
        self.entity = entity
        self.current = current
        self.target = target
        super().__init__(f"{entity} cannot move from '{current}' to '{target}'")


class PreconditionFailed(CampaignCoreError):
    """A named business rule is not met."""

    def __init__(self, condition: str):
        self.condition = condition
        super().__init__(condition)


class ConflictingUpdate(CampaignCoreError):
    """A concurrent write was detected and this one was rejected."""

    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} was modified concurrently")
