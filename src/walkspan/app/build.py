# walkspan/app/build.py
from collections.abc import Mapping
from dataclasses import dataclass

from walkspan.app.protocols import SegmentStore
from walkspan.config.models import ServiceModel
from walkspan.io.query_logging import QueryLogging  # JSON logs
from walkspan.query.engine import QueryEngine
from walkspan.query.hooks import NoopHooks
from walkspan.runtime.registries import make_store


@dataclass
class App:
    config: ServiceModel
    engine: QueryEngine
    stores: dict[str, SegmentStore]

    def close(self) -> None:
        for store in self.stores.values():
            store.close()

    def __enter__(self) -> "App":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


def build(cfg: ServiceModel | Mapping, *, use_logging: bool = True) -> App:
    # 0) Validate config
    model = cfg if isinstance(cfg, ServiceModel) else ServiceModel.model_validate(cfg)

    # 1) Hooks
    hooks = (
        QueryLogging(service=model.name, level=model.log.level, debug=model.log.debug)
        if use_logging
        else NoopHooks()
    )

    # 2) Stores (the caller owns their lifetime through App.close)
    stores: dict[str, SegmentStore] = {}
    try:
        for name, store_cfg in model.sources.items():
            stores[name] = make_store(store_cfg)
    except Exception:
        for store in stores.values():
            store.close()
        raise

    # 3) Engine (inject deps explicitly)
    q = model.query
    engine = QueryEngine(
        stores,
        default_source=model.default_source,
        k=q.k,
        membership=q.membership,
        default_range_miles=q.default_range_miles,
        max_abs_latitude=q.max_abs_latitude,
        hooks=hooks,
    )
    return App(config=model, engine=engine, stores=stores)
