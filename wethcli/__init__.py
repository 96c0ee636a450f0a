#!/usr/bin/env python

import logging

import configargparse
from colorama import Fore
from web3.exceptions import Web3Exception

from weth import VERSION, BindingError

from . import cli, commands, types

logging.basicConfig(level=logging.INFO, format='%(asctime)s [%(levelname)s] %(message)s')
logger = logging.getLogger(__name__)


def build_parser():
    parser = configargparse.ArgParser(
        prog=__name__,
        auto_env_var_prefix='weth_',
        default_config_files=['~/.weth.conf'],
        args_for_writing_out_config_file=['--output-config'],
        formatter_class=configargparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument('-c', '--config', is_config_file_arg=True, help='config file path')
    parser.add_argument('--version', action='version', version=f'%(prog)s {VERSION}')
    parser.add_argument(
        '--wallet',
        metavar='ADDRESS_OR_PRIVATE_KEY',
        type=types.wallet,
        help='wallet address or private key, address only means node signed (value or path to file with value)',
    )
    parser.add_argument(
        '--web3-rpc',
        type=types.FileOrString,
        default='http://127.0.0.1:8545',
        help='web3 http endpoint (value or path to file with value)',
    )
    parser.add_argument('--contract', metavar='ADDRESS', help='WETH contract address')
    parser.add_argument('--poa', action='store_true', help='Chain uses proof-of-authority extra data (BSC, Polygon...)')
    parser.add_argument('--max-fee', type=float, help='Max fee per gas, in gwei (default: let the node decide)')
    parser.add_argument('--priority-fee', type=float, help='Max priority fee per gas, in gwei')
    parser.add_argument('--timeout', type=float, default=120, help='Seconds to wait for transaction receipts')
    parser.add_argument('--no-wait', action='store_true', help='Do not wait for transaction receipts')
    parser.add_argument('--debug', action='store_true', help='Debug verbosity')
    parser.add_argument('--no-colors', action='store_true', help='Disable colors in output')

    subparsers = parser.add_subparsers(title='commands', dest='cmd')

    for k, v in commands.commands.items():
        pm = subparsers.add_parser(k, help=v.help)
        for a in v.arguments:
            pm.add_argument(*a[0], **a[1])

    return parser


def setup_output(no_colors=False, debug=False):
    if no_colors:
        from colorama import init

        init(strip=True)

        # messages are formatted with Fore codes before colorama sees them
        class NoFore:
            def __getattribute__(self, _name: str):
                return ''

        Fore.__class__ = NoFore
    else:
        for level, colour in ((logging.WARNING, Fore.YELLOW), (logging.ERROR, Fore.RED), (logging.DEBUG, Fore.CYAN)):
            logging.addLevelName(level, f'{colour}{logging.getLevelName(level)}{Fore.RESET}')

    if debug:
        for name in ('weth', __name__):
            logging.getLogger(name).setLevel(logging.DEBUG)
        logger.debug('debug enabled')


def main(argv=None):
    p = build_parser()
    args = p.parse_args(argv)
    if not args.cmd:
        p.error('choose a command')

    setup_output(no_colors=args.no_colors, debug=args.debug)

    c = cli.CLI(args.wallet, args)
    try:
        c.run()
    except (BindingError, Web3Exception, ValueError) as e:
        logger.error('%s failed: %s', args.cmd, e)
        return 1
    except KeyboardInterrupt:
        logger.info('Stopping...')


if __name__ == '__main__':
    exit(main() or 0)
