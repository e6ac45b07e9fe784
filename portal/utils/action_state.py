from portal.models.enums import ActionStatus


def to_action_state(status: ActionStatus, message: str, **data) -> dict:
    """Body returned by every mutator: status, human message, optional extras."""
    state = {"status": status.value, "message": message}
    state.update({key: value for key, value in data.items() if value is not None})
    return state


def success(message: str, **data) -> dict:
    return to_action_state(ActionStatus.SUCCESS, message, **data)


def error(message: str, **data) -> dict:
    return to_action_state(ActionStatus.ERROR, message, **data)
