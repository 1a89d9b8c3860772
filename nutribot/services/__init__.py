from nutribot.services.collaborator import CollaboratorError
from nutribot.services.state_machine import (
    InvalidTransitionError,
    authenticate,
    can_transition,
    request_email,
    request_password,
    transition,
)
