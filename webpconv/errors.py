class WebpConvError(Exception):
    pass


class UsageError(WebpConvError):
    pass


class InputError(WebpConvError):
    pass
