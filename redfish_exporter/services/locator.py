"""
Chassis Locator - Resolves chassis resources for one session.

Chassis are listed fresh on every call. A partially retrieved list is used
as long as it holds at least one chassis; authentication failures are
retried by the session.
"""

import logging
from typing import Any, Dict, List, Tuple, Type

from redfish_exporter.models.redfish import Chassis, Power, PowerSupply, Thermal
from redfish_exporter.services.redfish import (
    MalformedResponseError,
    ModelT,
    PartialResultError,
    RedfishError,
    ResourceNotFound,
    TransportError,
    parse_resource,
)
from redfish_exporter.services.session import RedfishSession

logger = logging.getLogger(__name__)

PRIMARY_CHASSIS_ID = "1"

# Chassis known to hang or error when their power view is read
DENYLISTED_CHASSIS_IDS = frozenset({
    "NVMeSSD.0.Group.0.StorageBackplane",
})


def list_members(session: RedfishSession, path: str) -> List[Dict[str, Any]]:
    """
    Fetch every member of a collection, tolerating partial results.

    Raises:
        TransportError: If nothing could be retrieved
    """
    try:
        return session.call(lambda client: client.get_collection(path))
    except PartialResultError as e:
        if e.items:
            logger.debug(f"Using {len(e.items)} members of {path}: {e}")
            return e.items
        raise TransportError(f"no members of {path} could be retrieved: {e}") from e


def parse_members(model: Type[ModelT], payloads: List[Dict[str, Any]], path: str) -> List[ModelT]:
    """
    Validate collection members one by one, skipping those that do not fit the model.

    Raises:
        MalformedResponseError: If members were listed but none of them fit
    """
    parsed: List[ModelT] = []
    for payload in payloads:
        try:
            parsed.append(parse_resource(model, payload, path))
        except MalformedResponseError as e:
            logger.debug(f"Skipping malformed member of {path}: {e}")

    if payloads and not parsed:
        raise MalformedResponseError(f"none of the {len(payloads)} members of {path} could be parsed")
    return parsed


class ChassisRef:
    """A chassis resolved during the current scrape, with lazy Thermal and Power views."""

    def __init__(self, session: RedfishSession, chassis: Chassis):
        self._session = session
        self.chassis = chassis

    @property
    def id(self) -> str:
        return self.chassis.id

    def thermal(self) -> Thermal:
        if not self.chassis.thermal or not self.chassis.thermal.odata_id:
            raise ResourceNotFound(f"chassis {self.id} has no Thermal resource")
        path = self.chassis.thermal.odata_id
        return parse_resource(Thermal, self._session.call(lambda client: client.get(path)), path)

    def power(self) -> Power:
        if not self.chassis.power or not self.chassis.power.odata_id:
            raise ResourceNotFound(f"chassis {self.id} has no Power resource")
        path = self.chassis.power.odata_id
        return parse_resource(Power, self._session.call(lambda client: client.get(path)), path)

    def __repr__(self) -> str:
        return f"ChassisRef({self.id!r})"


class ChassisLocator:
    """Finds chassis resources on one Redfish service."""

    def __init__(self, session: RedfishSession):
        self.session = session

    def get_all(self) -> List[ChassisRef]:
        """
        Get every chassis the service lists.

        Raises:
            TransportError: If the chassis collection could not be read at all,
                or none of its members could be parsed
        """
        path = self.session.call(lambda client: client.service_root.chassis_path)
        return [
            ChassisRef(self.session, chassis)
            for chassis in parse_members(Chassis, list_members(self.session, path), path)
        ]

    def get_primary(self) -> ChassisRef:
        """
        Get the main chassis (ID "1").

        Raises:
            ResourceNotFound: If no chassis were listed or ID "1" is missing
            TransportError: If the chassis collection could not be read
        """
        return self._find(PRIMARY_CHASSIS_ID, f"main chassis (ID {PRIMARY_CHASSIS_ID}) not found")

    def get_by_id(self, chassis_id: str) -> ChassisRef:
        """
        Get a chassis by ID.

        Raises:
            ResourceNotFound: If no chassis were listed or the ID is missing
            TransportError: If the chassis collection could not be read
        """
        if chassis_id == PRIMARY_CHASSIS_ID:
            return self.get_primary()
        return self._find(chassis_id, f"chassis with ID {chassis_id} not found")

    def find_power_supplies(self) -> Tuple[ChassisRef, List[PowerSupply]]:
        """
        Scan all chassis for one that reports power supplies.

        Denylisted chassis are skipped without reading their Power view.
        Chassis are tried in list order and the first one with at least one
        named power supply wins.

        Returns:
            The chassis and its named power supplies

        Raises:
            ResourceNotFound: If no chassis reports a named power supply
            TransportError: If the chassis collection could not be read
        """
        for ref in self.get_all():
            if ref.id in DENYLISTED_CHASSIS_IDS:
                logger.debug(f"Skipping known problematic chassis {ref.id}")
                continue

            try:
                power = ref.power()
            except RedfishError as e:
                logger.debug(f"Failed to get power information from chassis {ref.id}: {e}")
                continue

            supplies = [psu for psu in power.power_supplies if psu.name]
            if supplies:
                logger.debug(f"Found {len(supplies)} power supplies on chassis {ref.id}")
                return ref, supplies

        raise ResourceNotFound("could not find any chassis with power supply information")

    def _find(self, chassis_id: str, missing_message: str) -> ChassisRef:
        chassis = self.get_all()
        if not chassis:
            raise ResourceNotFound("no chassis found")

        for ref in chassis:
            if ref.id == chassis_id:
                return ref
        raise ResourceNotFound(missing_message)
