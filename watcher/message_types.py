"""
📦 Message Types - DTOs du watcher

Contrats de données entre transports, moteur de réconciliation et collaborateurs
(toasts, status board).
"""
import time
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Mapping, Optional, Tuple


@dataclass(frozen=True)
class ChannelStatus:
    """Statut d'une chaîne suivie (clé = name.lower())"""
    name: str                             # Nom affiché (casse saisie par l'utilisateur)
    is_live: bool
    title: Optional[str] = None
    game: Optional[str] = None
    viewers: Optional[str] = None         # Texte, tel que renvoyé par Helix
    thumbnail_url: Optional[str] = None
    last_checked: float = 0.0             # Epoch seconds
    last_changed: float = 0.0             # Bouge uniquement sur un flip is_live

    @property
    def key(self) -> str:
        return self.name.lower()


@dataclass(frozen=True)
class Credentials:
    """Identifiants Twitch. access_token peut être vide si un secret est présent."""
    client_id: str
    access_token: str = ""
    client_secret: Optional[str] = None

    @property
    def has_secret(self) -> bool:
        return bool(self.client_secret)

    @property
    def has_token(self) -> bool:
        return bool(self.access_token)

    def with_token(self, access_token: str) -> "Credentials":
        return replace(self, access_token=access_token)

    def __repr__(self) -> str:
        return (
            f"Credentials(client_id={self.client_id!r}, "
            f"token={'set' if self.has_token else 'empty'}, "
            f"secret={'set' if self.has_secret else 'none'})"
        )


@dataclass(frozen=True)
class WatchState:
    """
    Snapshot publié atomiquement : StatusMap + AlertedSet.

    Un flip live/offline et l'état "déjà alerté" ne sont jamais observables
    séparément.
    """
    statuses: Mapping[str, ChannelStatus] = field(default_factory=lambda: MappingProxyType({}))
    alerted: FrozenSet[str] = frozenset()

    def live_channels(self) -> Tuple[ChannelStatus, ...]:
        return tuple(s for s in self.statuses.values() if s.is_live)

    def get(self, channel: str) -> Optional[ChannelStatus]:
        return self.statuses.get(channel.lower())


@dataclass(frozen=True)
class ChannelWentLive:
    """Transition offline → live (une seule fois par session live)"""
    name: str
    title: Optional[str] = None
    game: Optional[str] = None
    viewers: Optional[str] = None
    thumbnail_url: Optional[str] = None
    url: str = ""


@dataclass(frozen=True)
class ChannelWentOffline:
    """Transition live → offline"""
    name: str


@dataclass(frozen=True)
class PollFailed:
    """Cycle de poll abandonné"""
    kind: str                       # "auth", "unauthorized", "api", "network"
    message: str
    credentials_cleared: bool = False


@dataclass(frozen=True)
class StatusSnapshot:
    """Publié après chaque poll réussi, pour le rendu"""
    state: WatchState
    channels: Tuple[str, ...]
    checked_at: float


@dataclass
class SystemEvent:
    """Événement système (auth, scheduler, erreurs, etc.)"""
    kind: str                       # Type: "auth.token_refreshed", "scheduler.started", etc.
    payload: Dict[str, Any]         # Données de l'événement
    timestamp: float = 0.0          # Timestamp

    def __post_init__(self):
        if self.timestamp == 0.0:
            self.timestamp = time.time()
