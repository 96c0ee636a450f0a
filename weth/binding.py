import logging
import queue
import threading
from dataclasses import dataclass
from typing import Optional, Union

import rlp
from eth_account.signers.local import LocalAccount
from eth_utils import encode_hex, event_abi_to_log_topic, keccak, to_canonical_address
from hexbytes import HexBytes
from web3 import Web3

from .subscription import Subscription

logger = logging.getLogger(__name__)


class BindingError(Exception):
    """Binding used for something it was not bound for"""


@dataclass
class CallOpts:
    sender: Optional[str] = None
    block_identifier: Union[int, str] = 'latest'
    # query pending state instead of block_identifier
    pending: bool = False


@dataclass
class TransactOpts:
    sender: Optional[str] = None
    signer: Optional[LocalAccount] = None
    value: int = 0
    nonce: Optional[int] = None
    gas_limit: Optional[int] = None
    # legacy pricing, takes precedence over fee caps
    gas_price: Optional[int] = None
    gas_fee_cap: Optional[int] = None
    gas_tip_cap: Optional[int] = None
    # sign but do not broadcast
    no_send: bool = False

    @property
    def from_address(self) -> Optional[str]:
        if self.sender is not None:
            return self.sender
        if self.signer is not None:
            return self.signer.address
        return None


@dataclass
class FilterOpts:
    start: int = 0
    # None is latest
    end: Optional[int] = None


@dataclass
class WatchOpts:
    # None is "from now on"
    start: Optional[int] = None
    poll_interval: float = 2.0


@dataclass
class Transaction:
    """transaction built (and signed) by a binding, `sent` tells whether it was broadcast"""

    hash: Optional[HexBytes]
    params: dict
    raw_transaction: Optional[bytes] = None
    sent: bool = False


def create_address(sender: str, nonce: int) -> str:
    """
    Address of a contract created by `sender` with `nonce`

    >>> create_address('0x6ac7ea33f8831ea9dcc53393aaa88b25a785dbf0', 0).lower()
    '0xcd234a471b72ba2f1ccf0a70fcaba648a5eecd8d'
    >>> create_address('0x6ac7ea33f8831ea9dcc53393aaa88b25a785dbf0', 1).lower()
    '0x343c43a37d37dff08ae8c4a11544c718abb4fcf8'
    """
    return Web3.to_checksum_address(keccak(rlp.encode([to_canonical_address(sender), nonce]))[12:])


def _transaction_params(w3: Web3, opts: TransactOpts) -> dict:
    sender = opts.from_address
    if sender is None:
        raise BindingError('sender or signer required to transact')
    nonce = opts.nonce
    if nonce is None:
        nonce = w3.eth.get_transaction_count(sender, 'pending')
    logger.debug('transaction from %s with nonce %d', sender, nonce)
    params = {'from': sender, 'nonce': nonce, 'value': opts.value}
    if opts.gas_limit is not None:
        params['gas'] = opts.gas_limit
    if opts.gas_price is not None:
        params['gasPrice'] = opts.gas_price
    else:
        if opts.gas_fee_cap is not None:
            params['maxFeePerGas'] = opts.gas_fee_cap
        if opts.gas_tip_cap is not None:
            params['maxPriorityFeePerGas'] = opts.gas_tip_cap
    return params


def _fill_dynamic_fees(w3: Web3, tx: dict):
    # EIP-1559 transactions need both fields, never mixed with gasPrice
    if 'maxPriorityFeePerGas' not in tx:
        tx['maxPriorityFeePerGas'] = min(w3.eth.max_priority_fee, tx['maxFeePerGas'])
    if 'maxFeePerGas' not in tx:
        base_fee = w3.eth.get_block('latest')['baseFeePerGas']
        tx['maxFeePerGas'] = 2 * base_fee + tx['maxPriorityFeePerGas']


def _fill_defaults(w3: Web3, tx: dict) -> dict:
    """chain, gas and pricing for raw transactions (contract functions get these from web3)"""
    tx.setdefault('chainId', w3.eth.chain_id)
    if 'gasPrice' not in tx:
        if 'maxFeePerGas' in tx or 'maxPriorityFeePerGas' in tx:
            _fill_dynamic_fees(w3, tx)
        else:
            tx['gasPrice'] = w3.eth.gas_price
    if 'gas' not in tx:
        tx['gas'] = w3.eth.estimate_gas(tx)
    return tx


def _send(w3: Web3, opts: TransactOpts, tx: dict) -> Transaction:
    """sign (with the node account if no signer) and broadcast, unless no_send"""
    if opts.signer is None:
        if opts.no_send:
            return Transaction(None, tx)
        tx_hash = w3.eth.send_transaction(tx)
        logger.info('transaction sent: %s', Web3.to_hex(tx_hash))
        return Transaction(HexBytes(tx_hash), tx, sent=True)
    signed = opts.signer.sign_transaction(tx)
    if opts.no_send:
        return Transaction(HexBytes(signed.hash), tx, signed.raw_transaction)
    tx_hash = w3.eth.send_raw_transaction(signed.raw_transaction)
    logger.info('transaction sent: %s', Web3.to_hex(tx_hash))
    return Transaction(HexBytes(tx_hash), tx, signed.raw_transaction, sent=True)


def _abi_entry(abi: list, _type: str, name: str) -> dict:
    for entry in abi:
        if entry.get('type') == _type and entry.get('name') == name:
            return entry
    raise BindingError(f'{_type} {name} not found in ABI')


class BoundContract:
    """
    Generic wrapper pairing a contract address and ABI with up to three backends:
    `caller` for read calls, `transactor` for transactions and `filterer` for logs.

    Any of them can be None, in which case the related operations raise `BindingError`.
    """

    def __init__(
        self,
        address: str,
        abi: list,
        caller: Optional[Web3] = None,
        transactor: Optional[Web3] = None,
        filterer: Optional[Web3] = None,
    ):
        self.address = Web3.to_checksum_address(address)
        self.abi = abi
        self._caller = caller
        self._transactor = transactor
        self._filterer = filterer
        self._contracts = {}

    def __repr__(self):
        return f'BoundContract({self.address})'

    def _backend(self, role: str) -> Web3:
        w3 = getattr(self, f'_{role}')
        if w3 is None:
            raise BindingError(f'no {role} bound to {self.address}')
        return w3

    def _contract(self, role: str):
        if role not in self._contracts:
            self._contracts[role] = self._backend(role).eth.contract(address=self.address, abi=self.abi)
        return self._contracts[role]

    def _function(self, role: str, method: str, params):
        _abi_entry(self.abi, 'function', method)
        return getattr(self._contract(role).functions, method)(*params)

    def event_abi(self, event: str) -> dict:
        return _abi_entry(self.abi, 'event', event)

    def call(self, opts: Optional[CallOpts], method: str, *params):
        """invoke a (constant) contract method and return its decoded output"""
        if opts is None:
            opts = CallOpts()
        tx = {}
        if opts.sender is not None:
            tx['from'] = opts.sender
        block = 'pending' if opts.pending else opts.block_identifier
        return self._function('caller', method, params).call(tx, block_identifier=block)

    def transact(self, opts: TransactOpts, method: str, *params) -> Transaction:
        """invoke a (paid) contract method"""
        w3 = self._backend('transactor')
        tx = self._function('transactor', method, params).build_transaction(_transaction_params(w3, opts))
        return _send(w3, opts, tx)

    def transfer(self, opts: TransactOpts) -> Transaction:
        """plain transaction moving `opts.value` to the contract, calling its default method if any"""
        w3 = self._backend('transactor')
        tx = _transaction_params(w3, opts)
        tx['to'] = self.address
        return _send(w3, opts, _fill_defaults(w3, tx))

    def _filter_params(self, event: str, rules, **blocks) -> dict:
        w3 = self._backend('filterer')
        event_abi = self.event_abi(event)
        topics = [encode_hex(event_abi_to_log_topic(event_abi))]
        indexed = [i for i in event_abi['inputs'] if i.get('indexed')]
        if len(rules) > len(indexed):
            raise BindingError(f'event {event} only has {len(indexed)} indexed arguments')
        for arg, rule in zip(indexed, rules):
            if rule is None:
                topics.append(None)
                continue
            if isinstance(rule, (str, bytes, int)):
                rule = [rule]
            topics.append([encode_hex(w3.codec.encode([arg['type']], [value])) for value in rule])
        # trailing wildcards are implicit
        while topics[-1] is None:
            topics.pop()
        return {'address': self.address, 'topics': topics, **blocks}

    def filter_logs(self, opts: Optional[FilterOpts], event: str, *rules) -> list:
        """
        Past logs of `event`. Each rule matches one indexed argument, in ABI order:
        None for any, a single value or a list of alternatives.
        """
        if opts is None:
            opts = FilterOpts()
        params = self._filter_params(
            event, rules, fromBlock=opts.start, toBlock='latest' if opts.end is None else opts.end
        )
        return self._backend('filterer').eth.get_logs(params)

    def watch_logs(self, opts: Optional[WatchOpts], event: str, *rules) -> tuple[queue.Queue, Subscription]:
        """
        Subscribe to new logs of `event` (same rules as `filter_logs`) by polling a node filter.
        Raw logs are put in the returned queue until the subscription ends.
        """
        if opts is None:
            opts = WatchOpts()
        w3 = self._backend('filterer')
        params = self._filter_params(event, rules, fromBlock='latest' if opts.start is None else opts.start)
        log_filter = w3.eth.filter(params)
        logs = queue.Queue()

        def poll(quit: threading.Event):
            try:
                while True:
                    for log in log_filter.get_new_entries():
                        logs.put(log)
                    if quit.wait(opts.poll_interval):
                        return None
            finally:
                w3.eth.uninstall_filter(log_filter.filter_id)

        return logs, Subscription(poll, name=f'{event}@{self.address}')

    def unpack_log(self, event: str, log) -> dict:
        """decode `log` as `event`, returning its arguments"""
        self.event_abi(event)
        return getattr(self._contract('filterer').events, event)().process_log(log)['args']


def deploy_contract(opts: TransactOpts, abi: list, bytecode: str, backend: Web3, *args):
    """
    Deploy a contract, returning its address, the deployment transaction and a `BoundContract` for it.
    The address is derived from sender and nonce so it is known before the transaction is mined.
    """
    params = _transaction_params(backend, opts)
    tx = backend.eth.contract(abi=abi, bytecode=bytecode).constructor(*args).build_transaction(params)
    transaction = _send(backend, opts, tx)
    address = create_address(params['from'], params['nonce'])
    logger.info('contract deployed at %s', address)
    return address, transaction, BoundContract(address, abi, backend, backend, backend)
