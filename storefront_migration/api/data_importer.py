"""Import transformed records into the destination APIs."""
import copy
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import click
import requests
from colorama import Fore

from storefront_migration.transformer.registry import to_minor_units
from .client import DestinationClient, describe_error
from .endpoint_mapper import EndpointMapper

logger = logging.getLogger(__name__)

# Destinations whose bodies are wrapped as {"data": record}
WRAPPED_SYSTEMS = ("strapi",)


@dataclass
class ImportResult:
    """Outcome of importing one record."""

    success: bool
    entity_type: str
    destination: str
    data: Any = None
    error: Optional[str] = None
    entity: Optional[Dict[str, Any]] = None
    dry_run: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "success": self.success,
            "entity_type": self.entity_type,
            "destination": self.destination,
            "data": self.data,
            "error": self.error,
            "entity": self.entity,
            "dry_run": self.dry_run,
        }


class DataImporter:
    """POST records one by one to the destination endpoints."""

    def __init__(self, clients: Dict[str, DestinationClient], verbose: bool = True):
        """
        Initialize importer.

        Args:
            clients: {system: DestinationClient}
            verbose: Print per-batch progress
        """
        self.clients = clients
        self.verbose = verbose

    def import_batch(
        self,
        records: List[Dict[str, Any]],
        entity_type: str,
        destination: str,
        dry_run: bool = False,
    ) -> List[ImportResult]:
        """
        Import records of one entity type, sequentially.

        A failed record does not stop the batch. No retries.

        Args:
            records: Transformed records
            entity_type: Entity type of every record
            destination: "medusa" or "strapi"
            dry_run: If True, build payloads without calling the API

        Returns:
            One ImportResult per record; empty when no endpoint exists
        """
        endpoint = EndpointMapper.get_endpoint(entity_type, destination)
        if not endpoint:
            logger.error(f"No {destination} endpoint for entity type '{entity_type}'")
            return []

        client = self.clients.get(destination)
        if client is None and not dry_run:
            logger.error(f"No client configured for {destination}")
            return []

        self._echo(f"{Fore.YELLOW}📊 {entity_type} → {destination} {endpoint} ({len(records)} records)")

        results = []
        for record in records:
            payload = self._prepare(record, entity_type, destination)

            if dry_run:
                results.append(ImportResult(
                    success=True,
                    entity_type=entity_type,
                    destination=destination,
                    data=payload,
                    dry_run=True,
                ))
                continue

            try:
                response = client.post(endpoint, payload)
                results.append(ImportResult(
                    success=True,
                    entity_type=entity_type,
                    destination=destination,
                    data=response,
                ))
            except requests.RequestException as e:
                error = describe_error(e)
                logger.error(f"Failed to import {entity_type} into {destination}: {error}")
                results.append(ImportResult(
                    success=False,
                    entity_type=entity_type,
                    destination=destination,
                    error=error,
                    entity=record,
                ))

        succeeded = sum(1 for r in results if r.success)
        prefix = "[DRY RUN] " if dry_run else ""
        color = Fore.GREEN if succeeded == len(results) else Fore.RED
        self._echo(f"{color}   {prefix}{succeeded}/{len(results)} imported")
        logger.info(f"{prefix}Imported {succeeded}/{len(results)} {entity_type} into {destination}")

        return results

    def import_all(
        self,
        data: Dict[str, Dict[str, List[Dict[str, Any]]]],
        dry_run: bool = False,
    ) -> Dict[str, Dict[str, List[ImportResult]]]:
        """
        Import every entity type of every destination.

        Args:
            data: {system: {entity_type: [records]}}
            dry_run: If True, simulate import without making API calls

        Returns:
            {system: {entity_type: [ImportResult]}}
        """
        results: Dict[str, Dict[str, List[ImportResult]]] = {}

        self._echo(f"\n{Fore.CYAN}{'=' * 70}")
        self._echo(f"{Fore.CYAN}📤 IMPORTING DATA VIA API ENDPOINTS")
        self._echo(f"{Fore.CYAN}{'=' * 70}\n")

        for system, by_type in data.items():
            for entity_type, records in by_type.items():
                results.setdefault(system, {})[entity_type] = self.import_batch(
                    records, entity_type, system, dry_run=dry_run
                )

        self._print_summary(results)
        return results

    def _prepare(self, record: Dict[str, Any], entity_type: str, destination: str) -> Dict[str, Any]:
        if destination == "medusa" and entity_type == "product":
            record = self._fix_prices(record)
        if destination in WRAPPED_SYSTEMS:
            return {"data": record}
        return record

    @staticmethod
    def _fix_prices(product: Dict[str, Any]) -> Dict[str, Any]:
        """Copy of a product with integer minor-unit prices and lowercase currencies."""
        product = copy.deepcopy(product)
        variants = product.get("variants")
        for variant in variants if isinstance(variants, list) else []:
            if not isinstance(variant, dict) or not isinstance(variant.get("prices"), list):
                continue
            for price in variant["prices"]:
                if not isinstance(price, dict):
                    continue
                amount = price.get("amount")
                if isinstance(amount, bool) or not isinstance(amount, int):
                    logger.warning(f"Converting non-integer price {amount!r} to minor units")
                    price["amount"] = to_minor_units(amount, "major")
                if isinstance(price.get("currency_code"), str):
                    price["currency_code"] = price["currency_code"].lower()
        return product

    def _print_summary(self, results: Dict[str, Dict[str, List[ImportResult]]]) -> None:
        self._echo(f"\n{Fore.CYAN}{'=' * 70}")
        self._echo(f"{Fore.CYAN}📈 IMPORT SUMMARY")
        self._echo(f"{Fore.CYAN}{'=' * 70}\n")

        total_created = 0
        total_errors = 0

        for system, by_type in results.items():
            for entity_type, batch in by_type.items():
                created = sum(1 for r in batch if r.success)
                errors = len(batch) - created
                status_icon = "✅" if errors == 0 else "❌"
                self._echo(f"{status_icon} {system + ':' + entity_type:30s} → {created:6d} created, {errors:6d} errors")
                total_created += created
                total_errors += errors

        self._echo(f"\n{Fore.GREEN}TOTAL: {total_created} records created, {total_errors} errors\n")

    def _echo(self, message: str) -> None:
        if self.verbose:
            click.echo(message)
