"""Error reporting with optional stack traces."""

import logging
import traceback

_logger = logging.getLogger("sonoscope")

_debug_output = False


def set_debug_output(enabled):
    """Turn the inclusion of a trace with every logged error on or off."""
    global _debug_output
    _debug_output = bool(enabled)


def log_error(err):
    """Log an error, attaching its formatted traceback when debug output is on."""
    if _debug_output:
        trace = "".join(traceback.format_exception(type(err), err, err.__traceback__))
        _logger.error("%s", err, extra={"trace": trace})
    else:
        _logger.error("%s", err)