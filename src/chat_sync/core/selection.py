from dataclasses import dataclass

from .dto import UserDTO


@dataclass(frozen=True, slots=True)
class Selection:
    """
    One selection of a peer. Every change of peer, including re-selecting the same
    peer or clearing it, produces a new generation; responses issued under an older
    generation are stale.
    """
    peer: UserDTO | None = None
    generation: int = 0

    @property
    def peer_id(self) -> int | None:
        return self.peer.id if self.peer else None

    def next(self, peer: UserDTO | None) -> "Selection":
        return Selection(peer=peer, generation=self.generation + 1)


class SelectionRef:
    """
    The single mutable reference to the active selection.

    Only the conversation selector assigns it; loops read it once when a request is
    issued and compare again when the response arrives.
    """
    __slots__ = ("current",)

    def __init__(self, current: Selection | None = None):
        self.current = current or Selection()

    def is_current(self, selection: Selection) -> bool:
        return self.current is selection
