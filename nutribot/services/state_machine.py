from nutribot.schemas.session import Step

VALID_TRANSITIONS = {
    Step.MENU: [Step.MENU, Step.NEED_EMAIL],
    # need-email -> need-email restarts the login prompt
    Step.NEED_EMAIL: [Step.NEED_EMAIL, Step.NEED_PASSWORD, Step.MENU],
    # need-password -> need-email restarts the login prompt
    Step.NEED_PASSWORD: [Step.MENU, Step.NEED_EMAIL],
}


class InvalidTransitionError(Exception):
    def __init__(self, from_step: Step, to_step: Step):
        self.from_step = from_step
        self.to_step = to_step
        super().__init__(f"Invalid transition: {from_step.value} -> {to_step.value}")


def can_transition(from_step: Step, to_step: Step) -> bool:
    """Check if transition is valid."""
    allowed = VALID_TRANSITIONS.get(from_step, [])
    return to_step in allowed


def transition(from_step: Step, to_step: Step) -> Step:
    """Perform step transition. Raises InvalidTransitionError if not allowed."""
    if not can_transition(from_step, to_step):
        raise InvalidTransitionError(from_step, to_step)
    return to_step


def request_email(current_step: Step) -> Step:
    """Start (or restart) the login flow."""
    return transition(current_step, Step.NEED_EMAIL)


def request_password(current_step: Step) -> Step:
    """Email was not found; collect a password for a new account."""
    return transition(current_step, Step.NEED_PASSWORD)


def authenticate(current_step: Step) -> Step:
    """Phone is linked to an account; back to the menu."""
    return transition(current_step, Step.MENU)
