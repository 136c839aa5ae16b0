"""Service topology builder.

Turns the metric rows of one dashboard window into a graph of nodes
(instrumented applications, conjectural external endpoints and the
synthetic user node) and calls annotated with rate and latency.

The build is a single synchronous pass. Per-field lookups against external
services (time arithmetic, alarm queries) are isolated: a failure is logged
and the field keeps its default, so the caller always gets a graph.
"""

from __future__ import annotations

from collections.abc import Iterable
from fractions import Fraction

import structlog

from svcmap.config import Settings
from svcmap.config import settings as default_settings
from svcmap.topology.models import (
    AlarmScope,
    Application,
    ApplicationComponent,
    ApplicationMapping,
    ApplicationMetric,
    ApplicationNode,
    ApplicationReferenceMetric,
    Call,
    ConjecturalNode,
    Step,
    TimeWindow,
    Topology,
    VisualUserNode,
)
from svcmap.topology.scoring import (
    ApdexCalculator,
    SlaCalculator,
    calculate_apdex,
    calculate_sla,
)
from svcmap.topology.services import (
    AlarmService,
    ApplicationCacheService,
    ComponentLibraryCatalogService,
    DateBetweenService,
    ServerService,
)

logger = structlog.get_logger()


# -- Lookup tables ------------------------------------------------------------


def build_node_comp_map(
    components: Iterable[ApplicationComponent],
    catalog: ComponentLibraryCatalogService,
) -> dict[int, str]:
    """Application id to the display name of its component."""
    comp_map: dict[int, str] = {}
    for component in components:
        name = catalog.get_component_name(component.component_id)
        if name is not None:
            comp_map[component.application_id] = name
    return comp_map


def build_conjectural_node_comp_map(
    components: Iterable[ApplicationComponent],
    catalog: ComponentLibraryCatalogService,
) -> dict[int, str]:
    """Application id to the server type its component talks to.

    Conjectural nodes are labelled by the kind of system they are (MySQL,
    Redis) rather than by the client library that observed them.
    """
    comp_map: dict[int, str] = {}
    for component in components:
        server_id = catalog.get_server_id_based_on_component(component.component_id)
        name = catalog.get_server_name(server_id)
        if name is not None:
            comp_map[component.application_id] = name
    return comp_map


def build_mapping_table(mappings: Iterable[ApplicationMapping]) -> dict[int, int]:
    """Duplicate address application id to canonical application id."""
    return {m.mapping_application_id: m.application_id for m in mappings}


def filter_zero_source_or_target(
    metrics: Iterable[ApplicationReferenceMetric],
    invalid_id: int = 0,
) -> list[ApplicationReferenceMetric]:
    """Drop rows whose source or target is the invalid application id."""
    return [m for m in metrics if m.source != invalid_id and m.target != invalid_id]


# -- Builder ------------------------------------------------------------------


class TopologyBuilder:
    """Build the service topology of one dashboard window.

    Parameters
    ----------
    application_cache:
        Application metadata lookup.
    component_catalog:
        Component and server type names.
    server_service:
        Server instances per application.
    date_between_service:
        Minutes in a window, used as the rate denominator.
    alarm_service:
        Alarm queries used for node alarm flags and counts.
    sla_calculator, apdex_calculator:
        Quality scores for application nodes.
    settings:
        Labels and reserved ids; defaults to the environment settings.
    """

    def __init__(
        self,
        application_cache: ApplicationCacheService,
        component_catalog: ComponentLibraryCatalogService,
        server_service: ServerService,
        date_between_service: DateBetweenService,
        alarm_service: AlarmService,
        sla_calculator: SlaCalculator = calculate_sla,
        apdex_calculator: ApdexCalculator = calculate_apdex,
        settings: Settings | None = None,
    ) -> None:
        self._application_cache = application_cache
        self._component_catalog = component_catalog
        self._server_service = server_service
        self._date_between_service = date_between_service
        self._sla_calculator = sla_calculator
        self._apdex_calculator = apdex_calculator
        self._settings = settings or default_settings
        self._alarm_loaders = {
            AlarmScope.APPLICATION: alarm_service.load_application_alarm_list,
            AlarmScope.INSTANCE: alarm_service.load_instance_alarm_list,
            AlarmScope.SERVICE: alarm_service.load_service_alarm_list,
        }

    def build(
        self,
        application_components: list[ApplicationComponent],
        application_mappings: list[ApplicationMapping],
        application_metrics: list[ApplicationMetric],
        caller_reference_metrics: list[ApplicationReferenceMetric],
        callee_reference_metrics: list[ApplicationReferenceMetric],
        step: Step,
        start_time_bucket: int,
        end_time_bucket: int,
        start_second_time_bucket: int,
        end_second_time_bucket: int,
    ) -> Topology:
        node_comp_map = build_node_comp_map(application_components, self._component_catalog)
        conjectural_comp_map = build_conjectural_node_comp_map(
            application_components, self._component_catalog
        )
        mappings = build_mapping_table(application_mappings)

        invalid_id = self._settings.invalid_application_id
        caller_metrics = filter_zero_source_or_target(caller_reference_metrics, invalid_id)
        callee_metrics = filter_zero_source_or_target(callee_reference_metrics, invalid_id)
        callee_metrics = self._callee_reference_metric_filter(callee_metrics)

        window = TimeWindow(
            step=step,
            start_time_bucket=start_time_bucket,
            end_time_bucket=end_time_bucket,
            start_second_time_bucket=start_second_time_bucket,
            end_second_time_bucket=end_second_time_bucket,
        )

        topology = Topology()
        node_ids: set[int] = set()

        for metric in application_metrics:
            node = self._application_node(metric, node_comp_map, window)
            topology.nodes.append(node)
            node_ids.add(node.id)

        for metric in caller_metrics:
            call = self._caller_call(
                metric, topology, node_ids, node_comp_map, conjectural_comp_map, mappings, window
            )
            topology.calls.append(call)

        for metric in callee_metrics:
            call = self._callee_call(
                metric, topology, node_ids, node_comp_map, conjectural_comp_map, window
            )
            topology.calls.append(call)

        logger.info(
            "topology_built",
            nodes=len(topology.nodes),
            calls=len(topology.calls),
            step=step,
        )
        return topology

    # -- Filters --------------------------------------------------------------

    def _callee_reference_metric_filter(
        self, metrics: list[ApplicationReferenceMetric]
    ) -> list[ApplicationReferenceMetric]:
        """Keep rows whose caller is outside instrumentation.

        Callee-side rows between two instrumented applications repeat what
        the caller side already reports; only address and user callers add
        edges the caller side cannot express.
        """
        none_id = self._settings.none_application_id
        filtered: list[ApplicationReferenceMetric] = []
        for metric in metrics:
            source = self._application(metric.source)
            if source.is_address or source.application_id == none_id:
                filtered.append(metric)
        return filtered

    # -- Nodes ----------------------------------------------------------------

    def _application_node(
        self,
        metric: ApplicationMetric,
        node_comp_map: dict[int, str],
        window: TimeWindow,
    ) -> ApplicationNode:
        application = self._application(metric.id)
        probe_size = self._settings.alarm_probe_page_size
        count_size = self._settings.alarm_count_page_size
        servers = self._server_service.get_all_server(
            metric.id, window.start_second_time_bucket, window.end_second_time_bucket
        )
        return ApplicationNode(
            id=metric.id,
            name=application.application_code,
            type=node_comp_map.get(application.application_id, self._settings.unknown_label),
            sla=self._sla_calculator(metric.error_calls, metric.calls),
            cpm=self._cpm(metric.calls, metric.id, window),
            avg_response_time=self._avg_response_time(metric.durations, metric.calls, metric.id),
            apdex=self._apdex_calculator(
                metric.satisfied_count, metric.tolerating_count, metric.frustrated_count
            ),
            alarm=self._alarm_count(AlarmScope.APPLICATION, window, probe_size, metric.id) > 0,
            num_of_server=len(servers),
            num_of_server_alarm=self._alarm_count(
                AlarmScope.INSTANCE, window, count_size, metric.id
            ),
            num_of_service_alarm=self._alarm_count(
                AlarmScope.SERVICE, window, count_size, metric.id
            ),
        )

    def _conjectural_node(self, application: Application, node_type: str) -> ConjecturalNode:
        return ConjecturalNode(
            id=application.application_id,
            name=application.application_code,
            type=node_type,
        )

    def _visual_user_node(self) -> VisualUserNode:
        user_code = self._settings.user_code
        return VisualUserNode(
            id=self._settings.none_application_id,
            name=user_code,
            type=user_code.upper(),
        )

    # -- Calls ----------------------------------------------------------------

    def _caller_call(
        self,
        metric: ApplicationReferenceMetric,
        topology: Topology,
        node_ids: set[int],
        node_comp_map: dict[int, str],
        conjectural_comp_map: dict[int, str],
        mappings: dict[int, int],
        window: TimeWindow,
    ) -> Call:
        unknown = self._settings.unknown_label
        source = self._application(metric.source)
        target = self._application(metric.target)

        if target.is_address and target.application_id not in mappings:
            if target.application_id not in node_ids:
                node_type = conjectural_comp_map.get(target.application_id, unknown)
                topology.nodes.append(self._conjectural_node(target, node_type))
                node_ids.add(target.application_id)

        if source.application_id not in node_ids:
            # Known to exist, but without its own metric row in this window.
            topology.nodes.append(
                ApplicationNode(
                    id=source.application_id,
                    name=source.application_code,
                    type=node_comp_map.get(source.application_id, unknown),
                    sla=self._settings.synthetic_node_sla,
                    apdex=self._settings.synthetic_node_apdex,
                )
            )
            node_ids.add(source.application_id)

        actual_target_id = mappings.get(target.application_id, target.application_id)
        if actual_target_id == target.application_id:
            actual_target = target
        else:
            actual_target = self._application(actual_target_id)

        return Call(
            source=source.application_id,
            source_name=source.application_code,
            target=actual_target.application_id,
            target_name=actual_target.application_code,
            # Classified by the observed target, before alias resolution.
            call_type=node_comp_map.get(metric.target, unknown),
            cpm=self._cpm(metric.calls, source.application_id, window),
            avg_response_time=self._avg_response_time(
                metric.durations, metric.calls, source.application_id
            ),
            alert=False,
        )

    def _callee_call(
        self,
        metric: ApplicationReferenceMetric,
        topology: Topology,
        node_ids: set[int],
        node_comp_map: dict[int, str],
        conjectural_comp_map: dict[int, str],
        window: TimeWindow,
    ) -> Call:
        unknown = self._settings.unknown_label
        none_id = self._settings.none_application_id
        source = self._application(metric.source)
        target = self._application(metric.target)
        from_user = source.application_id == none_id

        if from_user:
            if source.application_id not in node_ids:
                topology.nodes.append(self._visual_user_node())
                node_ids.add(source.application_id)
        elif source.is_address and source.application_id not in node_ids:
            # Typed by the target's server type, not the source's.
            node_type = conjectural_comp_map.get(target.application_id, unknown)
            topology.nodes.append(self._conjectural_node(source, node_type))
            node_ids.add(source.application_id)

        return Call(
            source=source.application_id,
            source_name=source.application_code,
            target=target.application_id,
            target_name=target.application_code,
            call_type="" if from_user else node_comp_map.get(metric.target, unknown),
            # Rate window of the callee, unlike caller-side calls.
            cpm=self._cpm(metric.calls, target.application_id, window),
            avg_response_time=self._avg_response_time(
                metric.durations, metric.calls, target.application_id
            ),
            alert=False,
        )

    # -- Lookups --------------------------------------------------------------

    def _application(self, application_id: int) -> Application:
        application = self._application_cache.get_application_by_id(application_id)
        if application is None:
            logger.warning("application_not_found", application_id=application_id)
            return Application(
                application_id=application_id,
                application_code=self._settings.unknown_label,
            )
        return application

    def _cpm(self, calls: int, application_id: int, window: TimeWindow) -> int:
        try:
            minutes = self._date_between_service.minutes_between(
                application_id,
                window.start_second_time_bucket,
                window.end_second_time_bucket,
            )
        except Exception as e:
            logger.warning(
                "cpm_lookup_failed",
                application_id=application_id,
                error=str(e),
            )
            return 0
        if minutes <= 0:
            logger.warning(
                "cpm_lookup_failed",
                application_id=application_id,
                error=f"non-positive minutes: {minutes}",
            )
            return 0
        return calls // minutes

    def _avg_response_time(self, durations: int, calls: int, application_id: int) -> Fraction:
        if calls <= 0:
            logger.warning("zero_calls_metric", application_id=application_id)
            return Fraction(0)
        return Fraction(durations, calls)

    def _alarm_count(
        self, scope: AlarmScope, window: TimeWindow, limit: int, application_id: int
    ) -> int:
        try:
            alarm = self._alarm_loaders[scope](
                "",
                window.step,
                window.start_time_bucket,
                window.end_time_bucket,
                limit,
                0,
            )
        except Exception as e:
            logger.warning(
                "alarm_query_failed",
                scope=scope,
                application_id=application_id,
                error=str(e),
            )
            return 0
        return len(alarm.items)
