"""Constants"""

# pylint: disable=too-few-public-methods
class C:
    """Constants"""
    COORDINATOR = 0
    MIN_PARTICIPANTS = 2
    NOT_FOUND = -1
    MIN_OBJECTS_TO_REPORT = 3
    DEFAULT_INPUT  = 'input.txt'
    DEFAULT_OUTPUT = 'output.txt'
    DEFAULT_ENGINE = 'relative'
    DEFAULT_GET_TIMEOUT = 30
    PIXEL_DTYPE = 'int32'
