# generated automatically - DO NOT MODIFY

from . import weth
