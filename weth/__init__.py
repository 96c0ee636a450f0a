VERSION = '0.1.0'

from .binding import (  # noqa
    BindingError,
    BoundContract,
    CallOpts,
    FilterOpts,
    Transaction,
    TransactOpts,
    WatchOpts,
)
from .subscription import Subscription  # noqa
from .weth import (  # noqa
    WETH,
    WETHApproval,
    WETHCaller,
    WETHFilterer,
    WETHOwnershipTransferred,
    WETHRaw,
    WETHSession,
    WETHTransactor,
    WETHTransfer,
    deploy_weth,
    new_weth,
    new_weth_caller,
    new_weth_filterer,
    new_weth_transactor,
)
