"""
WETH token binding: read calls, transactions and event logs of the WETH contract
on top of a generic `BoundContract`.

Layout follows the contract ABI (see `weth.contracts.weth`):

- `WETHCaller`: view functions
- `WETHTransactor`: state changing functions, each returning a `Transaction`
- `WETHFilterer`: `filter_*`, `watch_*` and `parse_*` for every event
- `WETH`: all of the above over the same contract
"""

import queue
from dataclasses import dataclass, field
from typing import Any, ClassVar, Optional, Union

from web3 import Web3

from . import subscription
from .binding import (
    BoundContract,
    CallOpts,
    FilterOpts,
    Transaction,
    TransactOpts,
    WatchOpts,
    deploy_contract,
)
from .contracts import weth as weth_contract

# single address or list of alternatives, None matches any
AddressRule = Union[None, str, list[str]]


@dataclass(frozen=True)
class _Event:
    # event name in the ABI and mapping of ABI argument names to fields
    NAME: ClassVar[str]
    ARGS: ClassVar[dict[str, str]]

    @classmethod
    def from_log(cls, args, raw):
        return cls(raw=raw, **{attr: args[arg] for arg, attr in cls.ARGS.items()})


@dataclass(frozen=True)
class WETHApproval(_Event):
    NAME: ClassVar[str] = 'Approval'
    ARGS: ClassVar[dict[str, str]] = {'owner': 'owner', 'spender': 'spender', 'value': 'value'}

    owner: str
    spender: str
    value: int
    raw: Any = field(repr=False, compare=False)


@dataclass(frozen=True)
class WETHOwnershipTransferred(_Event):
    NAME: ClassVar[str] = 'OwnershipTransferred'
    ARGS: ClassVar[dict[str, str]] = {'previousOwner': 'previous_owner', 'newOwner': 'new_owner'}

    previous_owner: str
    new_owner: str
    raw: Any = field(repr=False, compare=False)


@dataclass(frozen=True)
class WETHTransfer(_Event):
    NAME: ClassVar[str] = 'Transfer'
    ARGS: ClassVar[dict[str, str]] = {'from': 'sender', 'to': 'to', 'value': 'value'}

    sender: str
    to: str
    value: int
    raw: Any = field(repr=False, compare=False)


class _EventIterator:
    """
    Iterates the logs found by a `filter_*` call, decoding them on the way.
    `event` holds the last decoded event. A decoding error is raised as is.
    """

    def __init__(self, contract: BoundContract, event_class, logs: list):
        self.contract = contract
        self.event_class = event_class
        self.event = None
        self._logs = iter(logs)

    def __iter__(self):
        return self

    def __next__(self):
        log = next(self._logs)
        self.event = self.event_class.from_log(self.contract.unpack_log(self.event_class.NAME, log), log)
        return self.event

    def close(self):
        self._logs = iter(())

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()


class WETHApprovalIterator(_EventIterator):
    def __init__(self, contract: BoundContract, logs: list):
        super().__init__(contract, WETHApproval, logs)


class WETHOwnershipTransferredIterator(_EventIterator):
    def __init__(self, contract: BoundContract, logs: list):
        super().__init__(contract, WETHOwnershipTransferred, logs)


class WETHTransferIterator(_EventIterator):
    def __init__(self, contract: BoundContract, logs: list):
        super().__init__(contract, WETHTransfer, logs)


class _Binding:
    def __init__(self, contract: BoundContract):
        self.contract = contract

    @property
    def address(self) -> str:
        return self.contract.address


class WETHCaller(_Binding):
    """read-only binding"""

    def allowance(self, owner: str, spender: str, opts: Optional[CallOpts] = None) -> int:
        return self.contract.call(opts, 'allowance', owner, spender)

    def balance_of(self, account: str, opts: Optional[CallOpts] = None) -> int:
        return self.contract.call(opts, 'balanceOf', account)

    def decimals(self, opts: Optional[CallOpts] = None) -> int:
        return self.contract.call(opts, 'decimals')

    def name(self, opts: Optional[CallOpts] = None) -> str:
        return self.contract.call(opts, 'name')

    def owner(self, opts: Optional[CallOpts] = None) -> str:
        return self.contract.call(opts, 'owner')

    def symbol(self, opts: Optional[CallOpts] = None) -> str:
        return self.contract.call(opts, 'symbol')

    def total_supply(self, opts: Optional[CallOpts] = None) -> int:
        return self.contract.call(opts, 'totalSupply')


class WETHTransactor(_Binding):
    """write-only binding"""

    def approve(self, spender: str, amount: int, opts: TransactOpts) -> Transaction:
        return self.contract.transact(opts, 'approve', spender, amount)

    def decrease_allowance(self, spender: str, subtracted_value: int, opts: TransactOpts) -> Transaction:
        return self.contract.transact(opts, 'decreaseAllowance', spender, subtracted_value)

    def increase_allowance(self, spender: str, added_value: int, opts: TransactOpts) -> Transaction:
        return self.contract.transact(opts, 'increaseAllowance', spender, added_value)

    def mint(self, recipient: str, amount: int, opts: TransactOpts) -> Transaction:
        return self.contract.transact(opts, 'mint', recipient, amount)

    def renounce_ownership(self, opts: TransactOpts) -> Transaction:
        return self.contract.transact(opts, 'renounceOwnership')

    def transfer(self, recipient: str, amount: int, opts: TransactOpts) -> Transaction:
        return self.contract.transact(opts, 'transfer', recipient, amount)

    def transfer_from(self, sender: str, recipient: str, amount: int, opts: TransactOpts) -> Transaction:
        return self.contract.transact(opts, 'transferFrom', sender, recipient, amount)

    def transfer_ownership(self, new_owner: str, opts: TransactOpts) -> Transaction:
        return self.contract.transact(opts, 'transferOwnership', new_owner)


class WETHFilterer(_Binding):
    """log filtering binding"""

    def _watch(self, event_class, sink: queue.Queue, opts: Optional[WatchOpts], *rules):
        if opts is None:
            opts = WatchOpts()
        logs, sub = self.contract.watch_logs(opts, event_class.NAME, *rules)
        return subscription.forward(
            sub,
            logs,
            sink,
            lambda log: self._parse(event_class, log),
            poll_interval=opts.poll_interval,
        )

    def _parse(self, event_class, log):
        return event_class.from_log(self.contract.unpack_log(event_class.NAME, log), log)

    def filter_approval(
        self, owner: AddressRule = None, spender: AddressRule = None, opts: Optional[FilterOpts] = None
    ) -> WETHApprovalIterator:
        return WETHApprovalIterator(self.contract, self.contract.filter_logs(opts, 'Approval', owner, spender))

    def watch_approval(
        self,
        sink: queue.Queue,
        owner: AddressRule = None,
        spender: AddressRule = None,
        opts: Optional[WatchOpts] = None,
    ) -> subscription.Subscription:
        return self._watch(WETHApproval, sink, opts, owner, spender)

    def parse_approval(self, log) -> WETHApproval:
        return self._parse(WETHApproval, log)

    def filter_ownership_transferred(
        self,
        previous_owner: AddressRule = None,
        new_owner: AddressRule = None,
        opts: Optional[FilterOpts] = None,
    ) -> WETHOwnershipTransferredIterator:
        return WETHOwnershipTransferredIterator(
            self.contract, self.contract.filter_logs(opts, 'OwnershipTransferred', previous_owner, new_owner)
        )

    def watch_ownership_transferred(
        self,
        sink: queue.Queue,
        previous_owner: AddressRule = None,
        new_owner: AddressRule = None,
        opts: Optional[WatchOpts] = None,
    ) -> subscription.Subscription:
        return self._watch(WETHOwnershipTransferred, sink, opts, previous_owner, new_owner)

    def parse_ownership_transferred(self, log) -> WETHOwnershipTransferred:
        return self._parse(WETHOwnershipTransferred, log)

    def filter_transfer(
        self, sender: AddressRule = None, to: AddressRule = None, opts: Optional[FilterOpts] = None
    ) -> WETHTransferIterator:
        return WETHTransferIterator(self.contract, self.contract.filter_logs(opts, 'Transfer', sender, to))

    def watch_transfer(
        self,
        sink: queue.Queue,
        sender: AddressRule = None,
        to: AddressRule = None,
        opts: Optional[WatchOpts] = None,
    ) -> subscription.Subscription:
        return self._watch(WETHTransfer, sink, opts, sender, to)

    def parse_transfer(self, log) -> WETHTransfer:
        return self._parse(WETHTransfer, log)


class WETH(WETHCaller, WETHTransactor, WETHFilterer):
    """read, write and log filtering binding"""


class WETHSession:
    """`WETH` with pre-set call and transact options"""

    def __init__(
        self, contract: WETH, call_opts: Optional[CallOpts] = None, transact_opts: Optional[TransactOpts] = None
    ):
        self.contract = contract
        self.call_opts = call_opts or CallOpts()
        self.transact_opts = transact_opts or TransactOpts()

    def allowance(self, owner: str, spender: str) -> int:
        return self.contract.allowance(owner, spender, opts=self.call_opts)

    def balance_of(self, account: str) -> int:
        return self.contract.balance_of(account, opts=self.call_opts)

    def decimals(self) -> int:
        return self.contract.decimals(opts=self.call_opts)

    def name(self) -> str:
        return self.contract.name(opts=self.call_opts)

    def owner(self) -> str:
        return self.contract.owner(opts=self.call_opts)

    def symbol(self) -> str:
        return self.contract.symbol(opts=self.call_opts)

    def total_supply(self) -> int:
        return self.contract.total_supply(opts=self.call_opts)

    def approve(self, spender: str, amount: int) -> Transaction:
        return self.contract.approve(spender, amount, opts=self.transact_opts)

    def decrease_allowance(self, spender: str, subtracted_value: int) -> Transaction:
        return self.contract.decrease_allowance(spender, subtracted_value, opts=self.transact_opts)

    def increase_allowance(self, spender: str, added_value: int) -> Transaction:
        return self.contract.increase_allowance(spender, added_value, opts=self.transact_opts)

    def mint(self, recipient: str, amount: int) -> Transaction:
        return self.contract.mint(recipient, amount, opts=self.transact_opts)

    def renounce_ownership(self) -> Transaction:
        return self.contract.renounce_ownership(opts=self.transact_opts)

    def transfer(self, recipient: str, amount: int) -> Transaction:
        return self.contract.transfer(recipient, amount, opts=self.transact_opts)

    def transfer_from(self, sender: str, recipient: str, amount: int) -> Transaction:
        return self.contract.transfer_from(sender, recipient, amount, opts=self.transact_opts)

    def transfer_ownership(self, new_owner: str) -> Transaction:
        return self.contract.transfer_ownership(new_owner, opts=self.transact_opts)


class WETHCallerSession:
    """`WETHCaller` with pre-set call options"""

    def __init__(self, contract: WETHCaller, call_opts: Optional[CallOpts] = None):
        self.contract = contract
        self.call_opts = call_opts or CallOpts()

    allowance = WETHSession.allowance
    balance_of = WETHSession.balance_of
    decimals = WETHSession.decimals
    name = WETHSession.name
    owner = WETHSession.owner
    symbol = WETHSession.symbol
    total_supply = WETHSession.total_supply


class WETHTransactorSession:
    """`WETHTransactor` with pre-set transact options"""

    def __init__(self, contract: WETHTransactor, transact_opts: TransactOpts):
        self.contract = contract
        self.transact_opts = transact_opts

    approve = WETHSession.approve
    decrease_allowance = WETHSession.decrease_allowance
    increase_allowance = WETHSession.increase_allowance
    mint = WETHSession.mint
    renounce_ownership = WETHSession.renounce_ownership
    transfer = WETHSession.transfer
    transfer_from = WETHSession.transfer_from
    transfer_ownership = WETHSession.transfer_ownership


class WETHCallerRaw:
    """low-level read-only access, by method name"""

    def __init__(self, contract: WETHCaller):
        self.contract = contract

    def call(self, opts: Optional[CallOpts], method: str, *params):
        return self.contract.contract.call(opts, method, *params)


class WETHTransactorRaw:
    """low-level write-only access, by method name"""

    def __init__(self, contract: WETHTransactor):
        self.contract = contract

    def transfer(self, opts: TransactOpts) -> Transaction:
        """plain value transfer to the contract"""
        return self.contract.contract.transfer(opts)

    def transact(self, opts: TransactOpts, method: str, *params) -> Transaction:
        return self.contract.contract.transact(opts, method, *params)


class WETHRaw(WETHCallerRaw, WETHTransactorRaw):
    """low-level access, by method name"""


def bind_weth(
    address: str,
    caller: Optional[Web3] = None,
    transactor: Optional[Web3] = None,
    filterer: Optional[Web3] = None,
) -> BoundContract:
    return BoundContract(address, weth_contract.ABI, caller, transactor, filterer)


def new_weth(address: str, backend: Web3) -> WETH:
    return WETH(bind_weth(address, backend, backend, backend))


def new_weth_caller(address: str, caller: Web3) -> WETHCaller:
    return WETHCaller(bind_weth(address, caller=caller))


def new_weth_transactor(address: str, transactor: Web3) -> WETHTransactor:
    return WETHTransactor(bind_weth(address, transactor=transactor))


def new_weth_filterer(address: str, filterer: Web3) -> WETHFilterer:
    return WETHFilterer(bind_weth(address, filterer=filterer))


def deploy_weth(opts: TransactOpts, backend: Web3, name: str, symbol: str) -> tuple[str, Transaction, WETH]:
    """deploy a new WETH contract, returning its address, the deployment transaction and a binding to it"""
    address, tx, bound = deploy_contract(opts, weth_contract.ABI, weth_contract.BIN, backend, name, symbol)
    return address, tx, WETH(bound)
