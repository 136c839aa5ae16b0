"""Collaborator interfaces consumed by the topology builder.

Storage, caching and catalog concerns live outside svcmap; anything that
can answer these calls can back a build. Implementations must be safe for
concurrent reads, since several dashboard requests may build at once.
"""

from abc import ABC, abstractmethod

from svcmap.topology.models import Alarm, Application, ServerInstance, Step


class ApplicationCacheService(ABC):
    """Application metadata lookup."""

    @abstractmethod
    def get_application_by_id(self, application_id: int) -> Application | None:
        """Return the registered application, or None when the id is unknown."""


class ComponentLibraryCatalogService(ABC):
    """Component classification catalog."""

    @abstractmethod
    def get_component_name(self, component_id: int) -> str | None:
        """Display name of a component (e.g. ``Tomcat``, ``Mysql``)."""

    @abstractmethod
    def get_server_id_based_on_component(self, component_id: int) -> int:
        """Id of the server type a client component talks to."""

    @abstractmethod
    def get_server_name(self, server_id: int) -> str | None:
        """Display name of a server type (e.g. ``MySQL``, ``Redis``)."""


class ServerService(ABC):
    @abstractmethod
    def get_all_server(
        self,
        application_id: int,
        start_second_time_bucket: int,
        end_second_time_bucket: int,
    ) -> list[ServerInstance]:
        """Server instances of the application alive within the window."""


class DateBetweenService(ABC):
    @abstractmethod
    def minutes_between(
        self,
        application_id: int,
        start_second_time_bucket: int,
        end_second_time_bucket: int,
    ) -> int:
        """Minutes the application was observable within the window.

        Raises ``TimeBucketError`` when a bucket cannot be parsed.
        """


class AlarmService(ABC):
    """Paged alarm queries at application, instance and service scope.

    Every method raises ``AlarmQueryError`` when the query cannot run.
    """

    @abstractmethod
    def load_application_alarm_list(
        self,
        keywords: str,
        step: Step,
        start_time_bucket: int,
        end_time_bucket: int,
        limit: int,
        from_: int,
    ) -> Alarm: ...

    @abstractmethod
    def load_instance_alarm_list(
        self,
        keywords: str,
        step: Step,
        start_time_bucket: int,
        end_time_bucket: int,
        limit: int,
        from_: int,
    ) -> Alarm: ...

    @abstractmethod
    def load_service_alarm_list(
        self,
        keywords: str,
        step: Step,
        start_time_bucket: int,
        end_time_bucket: int,
        limit: int,
        from_: int,
    ) -> Alarm: ...
