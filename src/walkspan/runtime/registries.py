# runtime/registries.py
import os
from collections.abc import Callable

from walkspan.app.protocols import SegmentStore
from walkspan.config.models import (
    StoreMemoryModel,
    StoreSqliteModel,
    StoreUnion,
    resolve_layout,
)
from walkspan.runtime.resources import load_segments_from_path
from walkspan.stores.memory import MemorySegmentStore
from walkspan.stores.sqlite import SqliteSegmentStore

StoreFactory = Callable[[StoreUnion, dict], SegmentStore]

_store_registry: dict[str, StoreFactory] = {}


# ------------------- Segment stores ---------------------------


def register_store(kind: str):
    def deco(fn: StoreFactory):
        _store_registry[kind] = fn
        return fn

    return deco


def make_store(cfg: StoreUnion, *, deps: dict | None = None) -> SegmentStore:
    try:
        factory = _store_registry[cfg.kind]
    except KeyError:
        raise ValueError(f"Unknown store kind {cfg.kind!r}") from None
    return factory(cfg, deps or {})


@register_store("sqlite")
def _make_sqlite(cfg: StoreSqliteModel, deps):
    return SqliteSegmentStore(
        cfg.file,
        resolve_layout(cfg.layout),
        on_malformed=cfg.on_malformed,
    )


@register_store("memory")
def _make_memory(cfg: StoreMemoryModel, deps):
    if not os.path.exists(cfg.file):
        if cfg.must_exist:
            raise FileNotFoundError(cfg.file)
        return MemorySegmentStore(())
    segments = load_segments_from_path(
        cfg.file, cfg.fmt, resolve_layout(cfg.layout), cfg.on_malformed
    )
    return MemorySegmentStore(segments, on_malformed=cfg.on_malformed)
