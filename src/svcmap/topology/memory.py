"""In-memory collaborator implementations.

Back a build from plain Python data: snapshot files loaded by the CLI,
fixtures in tests, or small embedded deployments.
"""

from __future__ import annotations

from collections.abc import Iterable

import structlog

from svcmap.exceptions import AlarmQueryError
from svcmap.topology.models import (
    Alarm,
    AlarmItem,
    AlarmScope,
    Application,
    ServerInstance,
    Step,
)
from svcmap.topology.services import (
    AlarmService,
    ApplicationCacheService,
    ComponentLibraryCatalogService,
    ServerService,
)
from svcmap.topology.time_buckets import parse_time_bucket, to_time_bucket

logger = structlog.get_logger()

# Day, hour, minute and second digits at the end of a month.
_END_OF_BUCKET = "31235959"


class InMemoryApplicationCache(ApplicationCacheService):
    def __init__(self, applications: Iterable[Application] = ()) -> None:
        self._applications: dict[int, Application] = {}
        for application in applications:
            self.register(application)

    def register(self, application: Application) -> Application:
        self._applications[application.application_id] = application
        return application

    def get_application_by_id(self, application_id: int) -> Application | None:
        return self._applications.get(application_id)

    def __len__(self) -> int:
        return len(self._applications)


class InMemoryComponentCatalog(ComponentLibraryCatalogService):
    """Component catalog backed by three dictionaries.

    Parameters
    ----------
    components:
        Component id to component display name.
    component_servers:
        Component id to the id of the server type it connects to.
    servers:
        Server id to server display name.
    """

    def __init__(
        self,
        components: dict[int, str] | None = None,
        component_servers: dict[int, int] | None = None,
        servers: dict[int, str] | None = None,
    ) -> None:
        self._components = dict(components or {})
        self._component_servers = dict(component_servers or {})
        self._servers = dict(servers or {})

    def get_component_name(self, component_id: int) -> str | None:
        return self._components.get(component_id)

    def get_server_id_based_on_component(self, component_id: int) -> int:
        # A component without a dedicated server type is its own server.
        return self._component_servers.get(component_id, component_id)

    def get_server_name(self, server_id: int) -> str | None:
        return self._servers.get(server_id)


class InMemoryServerService(ServerService):
    def __init__(self, instances: Iterable[ServerInstance] = ()) -> None:
        self._instances: list[ServerInstance] = list(instances)

    def add_instance(self, instance: ServerInstance) -> ServerInstance:
        self._instances.append(instance)
        return instance

    def get_all_server(
        self,
        application_id: int,
        start_second_time_bucket: int,
        end_second_time_bucket: int,
    ) -> list[ServerInstance]:
        return [
            i
            for i in self._instances
            if i.application_id == application_id
            and i.register_time_bucket <= end_second_time_bucket
            and i.heartbeat_time_bucket >= start_second_time_bucket
        ]


class InMemoryAlarmService(AlarmService):
    """Alarm store with keyword and time-bucket filtering.

    Alarm items carry second time buckets; query windows are given at the
    granularity of ``step`` and are widened to whole seconds before
    comparison. Scopes listed in ``failing_scopes`` raise
    ``AlarmQueryError`` on every query.
    """

    def __init__(
        self,
        items: Iterable[AlarmItem] = (),
        failing_scopes: Iterable[AlarmScope] = (),
    ) -> None:
        self._items: list[AlarmItem] = list(items)
        self._failing_scopes = set(failing_scopes)

    def add_item(self, item: AlarmItem) -> AlarmItem:
        self._items.append(item)
        return item

    def fail_scope(self, scope: AlarmScope) -> None:
        self._failing_scopes.add(scope)

    def load_application_alarm_list(
        self,
        keywords: str,
        step: Step,
        start_time_bucket: int,
        end_time_bucket: int,
        limit: int,
        from_: int,
    ) -> Alarm:
        return self._query(
            AlarmScope.APPLICATION, keywords, step, start_time_bucket, end_time_bucket, limit, from_
        )

    def load_instance_alarm_list(
        self,
        keywords: str,
        step: Step,
        start_time_bucket: int,
        end_time_bucket: int,
        limit: int,
        from_: int,
    ) -> Alarm:
        return self._query(
            AlarmScope.INSTANCE, keywords, step, start_time_bucket, end_time_bucket, limit, from_
        )

    def load_service_alarm_list(
        self,
        keywords: str,
        step: Step,
        start_time_bucket: int,
        end_time_bucket: int,
        limit: int,
        from_: int,
    ) -> Alarm:
        return self._query(
            AlarmScope.SERVICE, keywords, step, start_time_bucket, end_time_bucket, limit, from_
        )

    def _query(
        self,
        scope: AlarmScope,
        keywords: str,
        step: Step,
        start_time_bucket: int,
        end_time_bucket: int,
        limit: int,
        from_: int,
    ) -> Alarm:
        if scope in self._failing_scopes:
            raise AlarmQueryError(
                f"{scope} alarm query failed",
                extra={"scope": str(scope)},
            )
        start, end = self._second_window(step, start_time_bucket, end_time_bucket)
        matched = [
            item
            for item in self._items
            if item.scope == scope
            and start <= item.time_bucket <= end
            and (not keywords or keywords in item.title or keywords in item.content)
        ]
        logger.debug("alarm_query", scope=scope, matched=len(matched), limit=limit)
        return Alarm(items=matched[from_ : from_ + limit], total=len(matched))

    @staticmethod
    def _second_window(step: Step, start_time_bucket: int, end_time_bucket: int) -> tuple[int, int]:
        start = to_time_bucket(parse_time_bucket(start_time_bucket, step))
        parse_time_bucket(end_time_bucket, step)
        # Pad the end bucket out to the last second it covers.
        missing = 14 - len(str(end_time_bucket))
        end = int(f"{end_time_bucket}{_END_OF_BUCKET[len(_END_OF_BUCKET) - missing :]}")
        return start, end
