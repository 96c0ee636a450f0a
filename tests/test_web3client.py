import typing
from unittest import TestCase, mock

from hexbytes import HexBytes
from web3.middleware import ExtraDataToPOAMiddleware

from weth import WETH, Transaction, WETHRaw
from weth.web3client import DECIMALS, Client

from . import data
from .test_cli import TEST_WALLET, TEST_WALLET_WALLET


class Test(TestCase):
    def setUp(self) -> None:
        self.cli = Client('x', TEST_WALLET_WALLET.account, max_fee=25, priority_fee=1.5)
        self.web3mock = mock.MagicMock()
        self.cli.web3 = self.web3mock
        self.cli.web3.eth.get_transaction_count.return_value = 1
        self.cli.web3.eth.chain_id = 40000

    def test_wallet(self):
        self.assertEqual(self.cli.wallet, TEST_WALLET)
        self.assertIsNone(Client('x').wallet)

    def test_chain_id(self):
        self.assertEqual(self.cli.chain_id, 40000)

    def test_poa(self):
        c = Client('x', poa=True)
        self.assertIn(ExtraDataToPOAMiddleware, c.web3.middleware_onion)

    def test_call_opts(self):
        self.assertEqual(self.cli.call_opts().sender, TEST_WALLET)
        self.assertEqual(self.cli.call_opts(sender=data.OWNER, pending=True).sender, data.OWNER)

    def test_fee(self):
        opts = self.cli.transact_opts()
        self.assertIs(opts.signer, TEST_WALLET_WALLET.account)
        self.assertEqual(opts.gas_fee_cap, 25000000000)
        self.assertEqual(opts.gas_tip_cap, 1500000000)
        self.assertEqual(self.cli.transact_opts(gas_fee_cap=1).gas_fee_cap, 1)

    def test_no_fee_caps(self):
        opts = Client('x').transact_opts(sender=TEST_WALLET)
        self.assertIsNone(opts.gas_fee_cap)
        self.assertIsNone(opts.gas_tip_cap)
        self.assertIsNone(opts.signer)

    def test_fee_in_transaction(self):
        approve_mock = self.cli.web3.eth.contract.return_value.functions.approve
        approve_mock.return_value.build_transaction.side_effect = lambda params: params
        token = self.cli.weth(data.TOKEN)
        self.assertIsInstance(token, WETH)
        opts = self.cli.transact_opts(signer=None, sender=TEST_WALLET, no_send=True)
        tx = token.approve(data.SPENDER, 1000, opts=opts)
        approve_mock.assert_called_once_with(data.SPENDER, 1000)
        self.cli.web3.eth.send_raw_transaction.assert_not_called()
        self.assertEqual(
            tx.params,
            {
                'from': TEST_WALLET,
                'nonce': 1,
                'value': 0,
                'maxFeePerGas': 25000000000,
                'maxPriorityFeePerGas': 1500000000,
            },
        )

    def test_deploy(self):
        self.cli.web3.eth.send_raw_transaction.return_value = data.TX_HASH
        signed = mock.MagicMock(raw_transaction=b'raw', hash=data.TX_HASH)
        with mock.patch.object(type(TEST_WALLET_WALLET.account), 'sign_transaction', return_value=signed) as sign:
            address, tx, token = self.cli.deploy('Wrapped Ether', 'WETH')
        sign.assert_called_once()
        self.cli.web3.eth.contract.return_value.constructor.assert_called_once_with('Wrapped Ether', 'WETH')
        self.assertEqual(token.address, address)
        self.assertIsInstance(token, WETH)
        self.assertTrue(tx.sent)

    def test_return_types(self):
        self.assertIs(typing.get_type_hints(Client.weth)['return'], WETH)

    def test_priority_fee_only(self):
        c = Client('x', TEST_WALLET_WALLET.account, priority_fee=2)
        c.web3 = self.web3mock
        self.web3mock.eth.get_block.return_value = {'baseFeePerGas': 10}
        self.web3mock.eth.estimate_gas.return_value = 21000
        tx = WETHRaw(c.weth(data.TOKEN)).transfer(c.transact_opts(value=1, no_send=True))
        self.assertNotIn('gasPrice', tx.params)
        self.assertEqual(tx.params['maxPriorityFeePerGas'], 2000000000)
        self.assertEqual(tx.params['maxFeePerGas'], 2000000020)
        self.assertIsNotNone(tx.raw_transaction)

    def test_balance(self):
        self.cli.web3.eth.get_balance.return_value = 2 * DECIMALS
        self.assertEqual(self.cli.balance(), 2.0)
        self.cli.web3.eth.get_balance.assert_called_once_with(TEST_WALLET)
        self.assertEqual(self.cli.balance(data.OWNER, raw=True), 2 * DECIMALS)

    def test_wait(self):
        self.cli.web3.eth.wait_for_transaction_receipt.return_value = data.TX_RECEIPT
        tx = Transaction(HexBytes(data.TX_HASH), {}, sent=True)
        self.assertEqual(self.cli.wait(tx, timeout=5), data.TX_RECEIPT)
        self.cli.web3.eth.wait_for_transaction_receipt.assert_called_once_with(HexBytes(data.TX_HASH), timeout=5)

    def test_wait_reverted(self):
        self.cli.web3.eth.wait_for_transaction_receipt.return_value = {'status': 0}
        tx = Transaction(HexBytes(data.TX_HASH), {}, sent=True)
        with self.assertLogs('weth.web3client', level='ERROR'):
            self.assertEqual(self.cli.wait(tx), {'status': 0})

    def test_wait_not_sent(self):
        with self.assertRaisesRegex(ValueError, 'not sent'):
            self.cli.wait(Transaction(None, {}))
