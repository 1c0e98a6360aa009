"""
Exceptions used by the Webex Teams notifier.
"""


class WebexNotifyError(Exception):
    """
    Base class for every error the notifier reports before exiting.
    """


class ConfigError(WebexNotifyError):
    """
    Raised for a bad proxy URL, a missing file or an invalid flag combination.
    """


class TeamNotFound(WebexNotifyError):
    def __init__(self, team_title):
        self.team_title = team_title
        self.message = f"cannot find team >>{team_title}<<"
        super().__init__(self.message)

    def __str__(self):
        return self.message


class RoomCreationFailed(WebexNotifyError):
    pass


class RequestError(WebexNotifyError):
    """
    Raised on a transport failure or when the API answers with a non-2xx status.
    """
    def __init__(self, message, status_code=None):
        self.status_code = status_code
        super().__init__(message)


class ResponseParseError(WebexNotifyError):
    pass
