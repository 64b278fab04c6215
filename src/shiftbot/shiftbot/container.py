from __future__ import annotations

from concurrent.futures import Executor
from dataclasses import dataclass
from typing import Optional

from .audit.memory_audit_repository import InMemoryAuditRepository
from .audit.mysql_audit_repository import MySQLAuditRepository
from .audit.repository import AuditRepository
from .audit.service import AuditLog
from .commands.facade import CommandFacade
from .common.datetime_utils import Clock, SystemClock
from .core.constants import DEFAULT_EFFECT_TIMEOUT_SECONDS
from .database.connection import DBConfig, DatabaseConnection
from .effects.gateway import DiscordRestGateway, EffectGateway, NullGateway
from .effects.runner import EffectRunner
from .loa.memory_loa_repository import InMemoryLoaRepository
from .loa.mysql_loa_repository import MySQLLoaRepository
from .loa.repository import LoaRepository
from .loa.service import LoaLedger
from .shifts.memory_shift_repository import InMemoryShiftRepository
from .shifts.mysql_shift_repository import MySQLShiftRepository
from .shifts.repository import ShiftRepository
from .shifts.service import ShiftLedger


@dataclass(frozen=True)
class BotSettings:
    """Platform-facing options; everything except the token is optional."""

    bot_token: Optional[str] = None
    application_id: Optional[str] = None
    public_key: Optional[str] = None
    admin_role_id: Optional[str] = None
    shift_role_id: Optional[str] = None
    log_channel_id: Optional[str] = None
    guild_id: Optional[str] = None
    effect_timeout: float = DEFAULT_EFFECT_TIMEOUT_SECONDS

    @classmethod
    def from_settings(cls, settings) -> "BotSettings":
        return cls(
            bot_token=getattr(settings, "DISCORD_BOT_TOKEN", None) or None,
            application_id=getattr(settings, "DISCORD_APPLICATION_ID", None) or None,
            public_key=getattr(settings, "DISCORD_PUBLIC_KEY", None) or None,
            admin_role_id=getattr(settings, "ADMIN_ROLE_ID", None) or None,
            shift_role_id=getattr(settings, "SHIFT_ROLE_ID", None) or None,
            log_channel_id=getattr(settings, "LOG_CHANNEL_ID", None) or None,
            guild_id=getattr(settings, "GUILD_ID", None) or None,
            effect_timeout=float(getattr(settings, "EFFECT_TIMEOUT_SECONDS", DEFAULT_EFFECT_TIMEOUT_SECONDS)),
        )


@dataclass(frozen=True)
class Container:
    settings: BotSettings
    conn: Optional[DatabaseConnection]
    executor: Optional[Executor]

    shifts_repo: ShiftRepository
    loas_repo: LoaRepository
    audit_repo: AuditRepository

    clock: Clock
    audit_log: AuditLog
    shift_ledger: ShiftLedger
    loa_ledger: LoaLedger
    effect_runner: EffectRunner
    command_facade: CommandFacade

    def close(self) -> None:
        if self.executor is not None:
            self.executor.shutdown(wait=True)
        if self.conn is not None:
            self.conn.close()


def build_gateway(settings: BotSettings) -> EffectGateway:
    if not settings.bot_token:
        return NullGateway()
    return DiscordRestGateway(
        bot_token=settings.bot_token,
        shift_role_id=settings.shift_role_id,
        log_channel_id=settings.log_channel_id,
        timeout=settings.effect_timeout,
    )


def build_container(
    *,
    db_config: Optional[dict] = None,
    store_backend: str = "mysql",
    settings: Optional[BotSettings] = None,
    clock: Optional[Clock] = None,
    gateway: Optional[EffectGateway] = None,
    executor: Optional[Executor] = None,
) -> Container:
    settings = settings or BotSettings()
    clock = clock or SystemClock()

    conn: Optional[DatabaseConnection] = None
    if store_backend == "memory":
        shifts_repo: ShiftRepository = InMemoryShiftRepository()
        loas_repo: LoaRepository = InMemoryLoaRepository()
        audit_repo: AuditRepository = InMemoryAuditRepository()
    elif store_backend == "mysql":
        if not db_config:
            raise ValueError("db_config is required for the mysql store")
        conn = DatabaseConnection(DBConfig.coerce(db_config))
        shifts_repo = MySQLShiftRepository(conn)
        loas_repo = MySQLLoaRepository(conn)
        audit_repo = MySQLAuditRepository(conn)
    else:
        raise ValueError(f"Unknown store backend: {store_backend!r}")

    audit_log = AuditLog(audit_repo, clock)
    shift_ledger = ShiftLedger(shifts_repo, audit_log, clock)
    loa_ledger = LoaLedger(loas_repo, audit_log, clock)
    effect_runner = EffectRunner(gateway or build_gateway(settings), executor=executor)
    command_facade = CommandFacade(
        shift_ledger,
        loa_ledger,
        audit_log,
        effect_runner,
        broadcast=bool(settings.log_channel_id),
    )

    return Container(
        settings=settings,
        conn=conn,
        executor=executor,
        shifts_repo=shifts_repo,
        loas_repo=loas_repo,
        audit_repo=audit_repo,
        clock=clock,
        audit_log=audit_log,
        shift_ledger=shift_ledger,
        loa_ledger=loa_ledger,
        effect_runner=effect_runner,
        command_facade=command_facade,
    )
