#!/usr/bin/env python -u
"""
Regenerate contract modules under weth/contracts from a compiler artifact
(hardhat, foundry or solc --combined-json output) or from a block explorer API.

    ./generate_binding.py artifacts/WETH.json
    ./generate_binding.py --explorer https://api.etherscan.io/api --address 0x... --name WETH
"""

import argparse
import json
import logging
import re
import subprocess
from pathlib import Path
from typing import Optional

import requests

CONTRACT_DIR = Path(__file__).absolute().parent / 'weth' / 'contracts'

logging.basicConfig(level=logging.INFO, format='%(asctime)s [%(levelname)s] %(message)s')
logger = logging.getLogger(__name__)


def camel_to_snake(name):
    """
    >>> camel_to_snake('WETH')
    'weth'
    >>> camel_to_snake('ERC20Mintable')
    'erc20_mintable'
    """
    name = re.sub('(.)([A-Z][a-z]+)', r'\1_\2', name)
    return re.sub('([a-z0-9])([A-Z])', r'\1_\2', name).lower()


def _bytecode(value) -> Optional[str]:
    # foundry nests it as {"object": ...}
    if isinstance(value, dict):
        value = value.get('object')
    if not value:
        return None
    if not value.startswith('0x'):
        value = '0x' + value
    return value


def parse_artifact(data: dict, name: Optional[str] = None) -> tuple[str, list, Optional[str]]:
    """
    Extract (name, abi, bytecode) from a compiler artifact

    >>> parse_artifact({'contractName': 'WETH', 'abi': [], 'bytecode': '6080'})
    ('WETH', [], '0x6080')
    >>> parse_artifact({'contracts': {'src/WETH.sol:WETH': {'abi': '[]', 'bin': '6080'}}})
    ('WETH', [], '0x6080')
    """
    if 'contracts' in data:
        # solc --combined-json abi,bin
        contracts = data['contracts']
        if name is None:
            if len(contracts) != 1:
                raise ValueError(f'artifact has {len(contracts)} contracts, pick one with --name')
            key = next(iter(contracts))
        else:
            key = next((k for k in contracts if k.split(':')[-1] == name), None)
            if key is None:
                raise ValueError(f'{name} not found in artifact')
        data = contracts[key]
        name = key.split(':')[-1]
    elif 'abi' not in data:
        raise ValueError('artifact has no abi')
    abi = data['abi']
    if isinstance(abi, str):
        abi = json.loads(abi)
    name = name or data.get('contractName')
    if not name:
        raise ValueError('contract name not in artifact, use --name')
    return name, abi, _bytecode(data.get('bytecode') or data.get('bin'))


def fetch_abi(explorer: str, address: str, api_key: Optional[str] = None) -> list:
    """verified contract ABI from an etherscan compatible API"""
    params = {'module': 'contract', 'action': 'getabi', 'address': address}
    if api_key:
        params['apikey'] = api_key
    r = requests.get(explorer, params=params)
    r.raise_for_status()
    body = r.json()
    if body.get('status') != '1':
        raise ValueError(f"explorer error: {body.get('result')}")
    return json.loads(body['result'])


def render(name: str, abi: list, bytecode: Optional[str], source: str, address: Optional[str] = None) -> str:
    lines = [f'# generated automatically from {source} - DO NOT MODIFY', '', f'NAME = {name!r}', '']
    if address:
        lines.extend([f'CONTRACT = {address!r}', ''])
    lines.append(f'ABI = {abi!r}')
    if bytecode:
        lines.extend(['', f'BIN = {bytecode!r}'])
    return '\n'.join(lines) + '\n'


def update_init(path: Path = CONTRACT_DIR):
    modules = [f'from . import {m.stem}' for m in path.glob('*.py') if m.stem != '__init__']
    modules.sort()
    header = '# generated automatically - DO NOT MODIFY'
    (path / '__init__.py').write_text('\n'.join([header, ''] + modules) + '\n')


def black_em(path: Path = CONTRACT_DIR):
    subprocess.check_call(['black', '-q', '-S', '-l', '120', str(path)])


def build_parser():
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument('artifact', nargs='?', type=Path, help='compiler artifact (JSON)')
    parser.add_argument('--name', help='contract name (required with --explorer or multi-contract artifacts)')
    parser.add_argument('--explorer', help='etherscan compatible API URL to fetch a verified ABI from')
    parser.add_argument('--address', help='contract address (with --explorer)')
    parser.add_argument('--api-key', help='explorer API key')
    parser.add_argument('--output', type=Path, default=CONTRACT_DIR, help='contracts package directory')
    parser.add_argument('--no-black', action='store_true', help='do not format generated code')
    return parser


def main(argv=None):
    p = build_parser()
    args = p.parse_args(argv)
    if args.explorer:
        if not (args.address and args.name):
            p.error('--explorer requires --address and --name')
        name = args.name
        abi = fetch_abi(args.explorer, args.address, api_key=args.api_key)
        bytecode = None
        source = args.explorer
    elif args.artifact:
        name, abi, bytecode = parse_artifact(json.loads(args.artifact.read_text()), name=args.name)
        source = args.artifact.name
    else:
        p.error('artifact or --explorer required')

    args.output.mkdir(parents=True, exist_ok=True)
    f = args.output / f'{camel_to_snake(name)}.py'
    f.write_text(render(name, abi, bytecode, source, address=args.address))
    logger.info('%s written', f)
    update_init(args.output)
    if not args.no_black:
        black_em(args.output)


if __name__ == '__main__':
    main()
