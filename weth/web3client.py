import logging
from functools import cached_property
from typing import Any, Optional

from eth_account.signers.local import LocalAccount
from web3 import Web3, exceptions  # noqa - for others to import from here
from web3.middleware import ExtraDataToPOAMiddleware

from .binding import CallOpts, Transaction, TransactOpts
from .weth import WETH, deploy_weth, new_weth

DECIMALS = 1000000000000000000
GWEI_DECIMALS = 1000000000

logger = logging.getLogger(__name__)


class Client:
    """
    Web3 backend plus the account used to sign transactions.

    `max_fee` and `priority_fee` (in gwei) cap EIP-1559 fees of every transaction,
    otherwise web3 picks them.
    """

    def __init__(
        self,
        web3_provider: str,
        account: Optional[LocalAccount] = None,
        web3_provider_class: Any = None,
        poa: bool = False,
        max_fee: Optional[float] = None,
        priority_fee: Optional[float] = None,
    ):
        if web3_provider_class is None:
            web3_provider_class = Web3.HTTPProvider
        self.web3 = Web3(web3_provider_class(web3_provider))
        if poa:
            self.web3.middleware_onion.inject(ExtraDataToPOAMiddleware, layer=0)
        self.account = account
        self._max_fee = max_fee
        self._priority_fee = priority_fee

    @property
    def wallet(self) -> Optional[str]:
        return self.account.address if self.account is not None else None

    @cached_property
    def chain_id(self):
        return self.web3.eth.chain_id

    def call_opts(self, **kwargs) -> CallOpts:
        kwargs.setdefault('sender', self.wallet)
        return CallOpts(**kwargs)

    def transact_opts(self, **kwargs) -> TransactOpts:
        kwargs.setdefault('signer', self.account)
        if self._max_fee is not None:
            kwargs.setdefault('gas_fee_cap', int(self._max_fee * GWEI_DECIMALS))
        if self._priority_fee is not None:
            kwargs.setdefault('gas_tip_cap', int(self._priority_fee * GWEI_DECIMALS))
        return TransactOpts(**kwargs)

    def weth(self, address: str) -> WETH:
        return new_weth(address, self.web3)

    def deploy(self, name: str, symbol: str, **kwargs) -> tuple[str, Transaction, WETH]:
        return deploy_weth(self.transact_opts(**kwargs), self.web3, name, symbol)

    def balance(self, address: Optional[str] = None, raw=False):
        x = self.web3.eth.get_balance(address or self.wallet)
        if raw:
            return x
        return x / DECIMALS

    def wait(self, tx: Transaction, timeout: float = 120):
        """wait for the receipt of a sent transaction"""
        if not tx.sent:
            raise ValueError('transaction was not sent')
        receipt = self.web3.eth.wait_for_transaction_receipt(tx.hash, timeout=timeout)
        if receipt['status'] != 1:
            logger.error('transaction %s reverted', Web3.to_hex(tx.hash))
        return receipt
