import logging
import sys

logger = logging.getLogger("chip8vm")

# make it true if you want the opcode trace (--log, or F1 in the window)
logsOn = False

FORMAT = "[%(levelname)s]:  %(message)s"


def log(*args):
    if logsOn:
        logger.debug(" ".join(str(a) for a in args))


def setup_logging(trace=False, stream=None):
    global logsOn
    stream = stream if stream is not None else sys.stderr
    logging.basicConfig(level=logging.DEBUG if trace else logging.INFO, format=FORMAT, stream=stream)
    logger.setLevel(logging.DEBUG)
    logsOn = trace


def toggle_logs():
    global logsOn
    logsOn = not logsOn
    logger.info("logsOn: %s", logsOn)
    return logsOn
