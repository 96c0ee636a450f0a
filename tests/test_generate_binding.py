import json
import tempfile
from pathlib import Path
from unittest import TestCase, mock

import generate_binding
from weth.contracts import weth as weth_contract


class Test(TestCase):
    def test_parse_hardhat(self):
        name, abi, bytecode = generate_binding.parse_artifact(
            {'contractName': 'WETH', 'abi': weth_contract.ABI, 'bytecode': weth_contract.BIN}
        )
        self.assertEqual((name, abi, bytecode), ('WETH', weth_contract.ABI, weth_contract.BIN))

    def test_parse_foundry(self):
        name, abi, bytecode = generate_binding.parse_artifact(
            {'abi': [], 'bytecode': {'object': '0x6080', 'sourceMap': ''}}, name='WETH'
        )
        self.assertEqual((name, bytecode), ('WETH', '0x6080'))

    def test_parse_solc(self):
        artifact = {
            'contracts': {
                'src/WETH.sol:WETH': {'abi': json.dumps(weth_contract.ABI), 'bin': '6080'},
                'src/Ownable.sol:Ownable': {'abi': '[]', 'bin': ''},
            }
        }
        name, abi, bytecode = generate_binding.parse_artifact(artifact, name='WETH')
        self.assertEqual((name, abi, bytecode), ('WETH', weth_contract.ABI, '0x6080'))
        self.assertEqual(generate_binding.parse_artifact(artifact, name='Ownable'), ('Ownable', [], None))
        with self.assertRaisesRegex(ValueError, '2 contracts'):
            generate_binding.parse_artifact(artifact)
        with self.assertRaisesRegex(ValueError, 'ERC20 not found'):
            generate_binding.parse_artifact(artifact, name='ERC20')

    def test_parse_invalid(self):
        with self.assertRaisesRegex(ValueError, 'no abi'):
            generate_binding.parse_artifact({'bytecode': '0x'})
        with self.assertRaisesRegex(ValueError, 'contract name'):
            generate_binding.parse_artifact({'abi': []})

    def test_render(self):
        source = generate_binding.render('WETH', weth_contract.ABI, '0x6080', 'WETH.json', address='0x1')
        self.assertTrue(source.startswith('# generated automatically from WETH.json - DO NOT MODIFY\n'))
        ns = {}
        exec(source, ns)
        self.assertEqual(ns['NAME'], 'WETH')
        self.assertEqual(ns['ABI'], weth_contract.ABI)
        self.assertEqual(ns['BIN'], '0x6080')
        self.assertEqual(ns['CONTRACT'], '0x1')

    def test_main(self):
        with tempfile.TemporaryDirectory() as tmp_dir:
            tmp = Path(tmp_dir)
            artifact = tmp / 'ERC20Mintable.json'
            artifact.write_text(json.dumps({'contractName': 'ERC20Mintable', 'abi': [], 'bytecode': '0x60'}))
            out = tmp / 'contracts'
            (out / 'weth.py').parent.mkdir()
            (out / 'weth.py').write_text('')
            generate_binding.main([str(artifact), '--output', str(out), '--no-black'])
            self.assertIn("BIN = '0x60'", (out / 'erc20_mintable.py').read_text())
            self.assertEqual(
                (out / '__init__.py').read_text(),
                '# generated automatically - DO NOT MODIFY\n\nfrom . import erc20_mintable\nfrom . import weth\n',
            )

    @mock.patch('generate_binding.requests')
    def test_fetch_abi(self, requests_mock):
        requests_mock.get.return_value.json.return_value = {'status': '1', 'result': '[]'}
        self.assertEqual(generate_binding.fetch_abi('https://api.etherscan.io/api', '0x1', api_key='k'), [])
        requests_mock.get.assert_called_once_with(
            'https://api.etherscan.io/api',
            params={'module': 'contract', 'action': 'getabi', 'address': '0x1', 'apikey': 'k'},
        )

    @mock.patch('generate_binding.requests')
    def test_fetch_abi_error(self, requests_mock):
        requests_mock.get.return_value.json.return_value = {
            'status': '0',
            'result': 'Contract source code not verified',
        }
        with self.assertRaisesRegex(ValueError, 'not verified'):
            generate_binding.fetch_abi('https://api.etherscan.io/api', '0x1')
