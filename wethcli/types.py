from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import configargparse
from eth_account import Account
from eth_account.signers.local import LocalAccount


@dataclass
class Wallet:
    address: str
    account: Optional[LocalAccount]

    @classmethod
    def from_private_key(cls, private_key):
        a = Account.from_key(private_key)
        return cls(a.address, a)

    def __str__(self) -> str:
        return f'Wallet({self.address})'


class FileOrString(str):
    """value or, if it is the path to an existing file, the file contents"""

    def __new__(cls, content):
        if content:
            f = Path(content)
            if f.exists():
                return str.__new__(cls, f.read_text().strip())
        return str.__new__(cls, content)


def wallet(value: str) -> Optional[Wallet]:
    """
    address (read-only, or signed by the node) or private key

    >>> wallet('0xbad43dfb19C6Ab77D9eC30704b89879F1e6d3081')
    Wallet(address='0xbad43dfb19C6Ab77D9eC30704b89879F1e6d3081', account=None)
    """
    if not value:
        return None
    val = FileOrString(value)
    if val[:2].lower() == '0x' and len(val) == 42:
        return Wallet(val, None)
    return Wallet.from_private_key(val)


def key_value(value: str) -> tuple[str, str]:
    """
    >>> key_value('owner=0x1')
    ('owner', '0x1')
    """
    k, sep, v = value.partition('=')
    if not sep or not k:
        raise configargparse.argparse.ArgumentTypeError(f'expected NAME=VALUE, got {value!r}')
    return k.replace('-', '_'), v
