import argparse
import dataclasses
import logging
import queue
from functools import cached_property
from typing import Optional

from colorama import Fore
from web3 import Web3

from weth import WETH, BindingError, FilterOpts, Transaction, WatchOpts, web3client

from . import commands
from .types import Wallet, key_value

logger = logging.getLogger(__name__)

# event choice -> filter_*, watch_* suffix
EVENTS = {
    'approval': 'approval',
    'ownership-transferred': 'ownership_transferred',
    'transfer': 'transfer',
}


def format_event(event) -> str:
    raw = event.raw or {}
    fields = ' '.join(f'{f.name}={getattr(event, f.name)}' for f in dataclasses.fields(event) if f.name != 'raw')
    return f"{Fore.GREEN}{event.NAME}{Fore.RESET} [block {raw.get('blockNumber')}] {fields}"


class CLI:
    def __init__(self, wallet: Optional[Wallet], args: argparse.Namespace):
        """
        :param wallet: Wallet to use (private key for signed transactions, address only for node signed or read-only)
        :param args: original argparse Namespace
        """
        self.args = args
        self.wallet = wallet
        self.client = web3client.Client(
            args.web3_rpc,
            account=wallet.account if wallet else None,
            poa=args.poa,
            max_fee=args.max_fee,
            priority_fee=args.priority_fee,
        )

    @property
    def owner(self) -> Optional[str]:
        return self.wallet.address if self.wallet else None

    @cached_property
    def token(self) -> WETH:
        if not self.args.contract:
            raise BindingError('--contract is required for this command')
        return self.client.weth(self.args.contract)

    def _transact_opts(self):
        if self.owner is None:
            raise BindingError('--wallet is required for this command')
        return self.client.transact_opts(sender=self.owner)

    def _submit(self, tx: Transaction):
        print(f'transaction {Fore.YELLOW}{Web3.to_hex(tx.hash)}{Fore.RESET}')
        if self.args.no_wait:
            return tx
        receipt = self.client.wait(tx, timeout=self.args.timeout)
        if receipt['status'] == 1:
            print(f"{Fore.GREEN}confirmed{Fore.RESET} in block {receipt['blockNumber']}, gas used {receipt['gasUsed']}")
        else:
            print(f"{Fore.RED}reverted{Fore.RESET} in block {receipt['blockNumber']}")
        return receipt

    def _units(self, amount: int) -> str:
        decimals = self.token.decimals()
        return f'{amount / 10**decimals:.{min(decimals, 6)}f}'

    @commands.argument('symbol', help='Token symbol')
    @commands.argument('name', help='Token name')
    @commands.command()
    def cmd_deploy(self):
        """Deploy a new WETH contract"""
        address, tx, token = self.client.deploy(self.args.name, self.args.symbol, sender=self.owner)
        print(f'contract {Fore.GREEN}{address}{Fore.RESET}')
        self.token = token
        return self._submit(tx)

    @commands.command()
    def cmd_info(self):
        """Show token details"""
        t = self.token
        info = {
            'address': t.address,
            'chain': self.client.chain_id,
            'name': t.name(),
            'symbol': t.symbol(),
            'decimals': t.decimals(),
            'total supply': t.total_supply(),
            'owner': t.owner(),
        }
        for k, v in info.items():
            print(f'{k}: {v}')
        return info

    @commands.argument('account', nargs='?', help='Account to check (defaults to wallet)')
    @commands.command()
    def cmd_balance(self):
        """Token and native balance of an account"""
        account = self.args.account or self.owner
        if account is None:
            raise BindingError('account or --wallet required')
        bal = self.token.balance_of(account)
        native = self.client.balance(account)
        print(f'{self.token.symbol()}: {self._units(bal)} ({bal})')
        print(f'native: {native:.6f}')
        return bal

    @commands.argument('spender')
    @commands.argument('owner')
    @commands.command()
    def cmd_allowance(self):
        """Amount spender is allowed to transfer from owner"""
        r = self.token.allowance(self.args.owner, self.args.spender)
        print(r)
        return r

    @commands.argument('amount', type=int, help='Amount in base units')
    @commands.argument('spender')
    @commands.command()
    def cmd_approve(self):
        """Set allowance of spender"""
        return self._submit(self.token.approve(self.args.spender, self.args.amount, opts=self._transact_opts()))

    @commands.argument('amount', type=int, help='Amount in base units')
    @commands.argument('spender')
    @commands.command()
    def cmd_increase_allowance(self):
        """Increase allowance of spender"""
        return self._submit(
            self.token.increase_allowance(self.args.spender, self.args.amount, opts=self._transact_opts())
        )

    @commands.argument('amount', type=int, help='Amount in base units')
    @commands.argument('spender')
    @commands.command()
    def cmd_decrease_allowance(self):
        """Decrease allowance of spender"""
        return self._submit(
            self.token.decrease_allowance(self.args.spender, self.args.amount, opts=self._transact_opts())
        )

    @commands.argument('amount', type=int, help='Amount in base units')
    @commands.argument('recipient')
    @commands.command()
    def cmd_transfer(self):
        """Transfer tokens from wallet"""
        return self._submit(self.token.transfer(self.args.recipient, self.args.amount, opts=self._transact_opts()))

    @commands.argument('amount', type=int, help='Amount in base units')
    @commands.argument('recipient')
    @commands.argument('sender')
    @commands.command()
    def cmd_transfer_from(self):
        """Transfer tokens on behalf of sender (requires allowance)"""
        return self._submit(
            self.token.transfer_from(
                self.args.sender, self.args.recipient, self.args.amount, opts=self._transact_opts()
            )
        )

    @commands.argument('amount', type=int, help='Amount in base units')
    @commands.argument('recipient')
    @commands.command()
    def cmd_mint(self):
        """Mint new tokens (contract owner only)"""
        return self._submit(self.token.mint(self.args.recipient, self.args.amount, opts=self._transact_opts()))

    @commands.argument('new_owner')
    @commands.command()
    def cmd_transfer_ownership(self):
        """Transfer contract ownership"""
        return self._submit(self.token.transfer_ownership(self.args.new_owner, opts=self._transact_opts()))

    @commands.command()
    def cmd_renounce_ownership(self):
        """Leave the contract without owner"""
        return self._submit(self.token.renounce_ownership(opts=self._transact_opts()))

    def _event_filters(self):
        return dict(self.args.filter or [])

    @commands.argument(
        '--filter',
        type=key_value,
        action='append',
        metavar='ARG=ADDRESS',
        help='Match indexed argument (owner, spender, previous_owner, new_owner, sender, to), repeat for others',
    )
    @commands.argument('--to-block', type=int, help='Last block (default: latest)')
    @commands.argument('--from-block', type=int, default=0, help='First block')
    @commands.argument('event', choices=EVENTS.keys())
    @commands.command()
    def cmd_events(self):
        """List past events"""
        method = EVENTS[self.args.event]
        opts = FilterOpts(start=self.args.from_block, end=self.args.to_block)
        events = []
        with getattr(self.token, f'filter_{method}')(**self._event_filters(), opts=opts) as it:
            for event in it:
                print(format_event(event))
                events.append(event)
        return events

    @commands.argument('--count', type=int, help='Stop after this many events')
    @commands.argument('--poll-interval', type=float, default=2, help='Seconds between node polls')
    @commands.argument(
        '--filter',
        type=key_value,
        action='append',
        metavar='ARG=ADDRESS',
        help='Match indexed argument (owner, spender, previous_owner, new_owner, sender, to), repeat for others',
    )
    @commands.argument('event', choices=EVENTS.keys())
    @commands.command()
    def cmd_watch(self):
        """Print new events as they happen"""
        method = EVENTS[self.args.event]
        sink = queue.Queue()
        opts = WatchOpts(poll_interval=self.args.poll_interval)
        seen = 0
        logger.info('watching %s events', self.args.event)
        with getattr(self.token, f'watch_{method}')(sink, **self._event_filters(), opts=opts) as sub:
            while self.args.count is None or seen < self.args.count:
                try:
                    event = sink.get(timeout=opts.poll_interval)
                except queue.Empty:
                    error = sub.error()
                    if error is not None:
                        raise error
                    continue
                print(format_event(event))
                seen += 1
        return seen

    def run(self):
        cmd = commands.commands[self.args.cmd]
        return getattr(self, cmd._attr)()
