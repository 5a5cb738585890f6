import argparse
import os
import sys

from . import config
from .cpu import Chip8
from .errors import Chip8Error
from .keypad import ConsoleInput
from .loader import load_rom
from .logs import logger, setup_logging
from .screen import ConsoleDisplay, NullDisplay
from .timers import TimerPair


def build_parser():
    parser = argparse.ArgumentParser(prog="chip8vm", description="CHIP-8 virtual machine")
    parser.add_argument("rom", nargs="?", help="program image, prompted for when omitted")
    parser.add_argument("--hz", type=int, default=config.CPU_HZ,
                        help="instructions per second, 0 for unthrottled (default: %(default)s)")
    parser.add_argument("--timer-mode", choices=sorted(config.TIMER_MODES), default=config.TIMER_MODE,
                        help="fine: -1 every 1/60s, coarse: -60 every second (default: %(default)s)")
    parser.add_argument("--display", choices=("console", "window", "none"), default="console")
    parser.add_argument("--scale", type=int, default=config.SCALE, help="window pixel scale")
    parser.add_argument("--log", action="store_true", help="trace every instruction")
    return parser


def get_path_from_user(stdin=None, stdout=None):
    stdin = stdin if stdin is not None else sys.stdin
    stdout = stdout if stdout is not None else sys.stdout
    stdout.write("Enter the path to the ROM of your program:\n")
    stdout.flush()
    path = stdin.readline().strip()
    if not os.path.isfile(path):
        raise SystemExit("File not found: %r" % path)
    return path


def build_machine(args, display=None, input_source=None):
    if display is None:
        display = ConsoleDisplay() if args.display == "console" else NullDisplay()
    machine = Chip8(timers=TimerPair(args.timer_mode), display=display,
                    input_source=input_source, hz=args.hz)
    load_rom(args.rom, machine.memory)
    return machine


def main(argv=None, stdin=None):
    args = build_parser().parse_args(argv)
    setup_logging(trace=args.log)
    if args.rom is None:
        args.rom = get_path_from_user()

    try:
        machine = build_machine(args)
    except Chip8Error as e:
        logger.error("%s", e)
        return 1

    if args.display == "window":
        from .window import run_window
        run_window(machine, scale=args.scale)
    else:
        ConsoleInput(machine.input, stream=stdin).start()
        machine.start()
        try:
            machine.join()
        except KeyboardInterrupt:
            pass
        finally:
            machine.stop()

    if machine.error is not None:
        return 1
    return 0
