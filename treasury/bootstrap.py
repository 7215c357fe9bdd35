from dataclasses import dataclass
from typing import Optional

from core.clock import Clock, system_clock
from core.config import TreasuryFlowConfig, get_config
from core.events import EventDispatcher
from core.logging_config import get_logger
from credentials.registry import CredentialRegistry
from ledger.service import BalanceLedger

from .service import TreasuryWorkflow

logger = get_logger("bootstrap")


@dataclass
class TreasuryFlowServices:
    config: TreasuryFlowConfig
    events: EventDispatcher
    ledger: BalanceLedger
    registry: CredentialRegistry
    treasury: TreasuryWorkflow


def build_services(config: Optional[TreasuryFlowConfig] = None, clock: Clock = system_clock) -> TreasuryFlowServices:
    """
    Wire the three components together.

    The admin receives the minted supply, administers the credential registry
    and is the only account allowed to release treasury funds. All components
    share one event dispatcher so notifications form a single ordered stream.
    """
    config = config or get_config()
    events = EventDispatcher()

    ledger = BalanceLedger(
        deployer=config.admin_account,
        initial_supply=config.initial_supply,
        name=config.token_name,
        symbol=config.token_symbol,
        decimals=config.token_decimals,
        clock=clock,
        dispatcher=events,
    )
    registry = CredentialRegistry(admin=config.admin_account, clock=clock, dispatcher=events)
    treasury = TreasuryWorkflow(
        ledger=ledger,
        registry=registry,
        account=config.treasury_account,
        admin=config.admin_account,
        clock=clock,
        dispatcher=events,
    )
    logger.info(f"Services ready: admin={config.admin_account} treasury={config.treasury_account}")
    return TreasuryFlowServices(config=config, events=events, ledger=ledger, registry=registry, treasury=treasury)
