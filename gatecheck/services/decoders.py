"""
Format decoders, one per artifact family.

Each decoder parses bytes into its schema and then runs a structural check
that rejects syntactically valid documents belonging to another format.
Decoders never mutate their input and are safe to run concurrently.
"""
import csv
import io
import json
from typing import Any

import yaml
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from gatecheck.core.errors import EncodingError
from gatecheck.core.errors import FailedCheckError
from gatecheck.models.cyclonedx import CycloneDXReport
from gatecheck.models.file_type import FileType
from gatecheck.models.gitleaks import GitleaksReport
from gatecheck.models.grype import GrypeReport
from gatecheck.models.kev import KEVCatalog
from gatecheck.models.kev import KEVVulnerability
from gatecheck.models.policy import PolicyConfig
from gatecheck.models.semgrep import SemgrepReport
from gatecheck.services.archive import decode_bundle

KEV_CSV_HEADER = [
    'cveID',
    'vendorProject',
    'product',
    'vulnerabilityName',
    'dateAdded',
    'shortDescription',
    'requiredAction',
    'dueDate',
    'notes',
]


class Decoder:
    """Base decoder: `decode` is `check(parse(content))`."""
    file_type: FileType = FileType.GENERIC
    name: str = 'generic'

    def parse(self, content: bytes) -> Any:
        raise NotImplementedError

    def check(self, obj: Any) -> None:
        return None

    def decode(self, content: bytes) -> Any:
        obj = self.parse(content)
        self.check(obj)
        return obj

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class JSONModelDecoder(Decoder):
    """Parses JSON and validates it into a pydantic model."""
    model: type[BaseModel]

    def parse(self, content: bytes) -> Any:
        try:
            data = json.loads(content)
        except (ValueError, RecursionError) as e:
            raise EncodingError(f"{self.name}: invalid JSON: {e}") from e
        try:
            return self.model.model_validate(data)
        except PydanticValidationError as e:
            raise EncodingError(
                f"{self.name}: does not match schema ({e.error_count()} error(s))",
            ) from e


class GrypeDecoder(JSONModelDecoder):
    file_type = FileType.GRYPE
    name = 'grype'
    model = GrypeReport

    def check(self, obj: GrypeReport) -> None:
        if obj.descriptor.name != 'grype':
            raise FailedCheckError('grype: missing descriptor name')


class SemgrepDecoder(JSONModelDecoder):
    file_type = FileType.SEMGREP
    name = 'semgrep'
    model = SemgrepReport

    def check(self, obj: SemgrepReport) -> None:
        if obj.results is None:
            raise FailedCheckError("semgrep: required field 'results' is missing")
        if obj.errors is None:
            raise FailedCheckError("semgrep: required field 'errors' is missing")
        if obj.paths.scanned is None:
            raise FailedCheckError("semgrep: required field 'paths.scanned' is missing")


class GitleaksDecoder(JSONModelDecoder):
    """Gitleaks reports are a bare array of findings; no findings is literally `[]`."""
    file_type = FileType.GITLEAKS
    name = 'gitleaks'
    model = GitleaksReport

    def parse(self, content: bytes) -> Any:
        if content.strip() == b'[]':
            return GitleaksReport([])
        return super().parse(content)

    def check(self, obj: GitleaksReport) -> None:
        for index, finding in enumerate(obj):
            if not finding.rule_id:
                raise FailedCheckError(f"gitleaks: finding {index} has no RuleID")


class CycloneDXDecoder(JSONModelDecoder):
    file_type = FileType.CYCLONEDX
    name = 'cyclonedx'
    model = CycloneDXReport

    def check(self, obj: CycloneDXReport) -> None:
        if obj.bom_format != 'CycloneDX':
            raise FailedCheckError(f"cyclonedx: unexpected bomFormat '{obj.bom_format}'")
        if not obj.components and not obj.vulnerabilities:
            raise FailedCheckError('cyclonedx: no components or vulnerabilities')


class ConfigDecoder(Decoder):
    file_type = FileType.CONFIG
    name = 'config'

    def parse(self, content: bytes) -> Any:
        try:
            data = yaml.safe_load(content)
        except (yaml.YAMLError, ValueError, RecursionError) as e:
            raise EncodingError(f"config: invalid YAML: {e}") from e
        if not isinstance(data, dict):
            raise EncodingError('config: document is not a mapping')
        if 'version' not in data:
            raise FailedCheckError('config: missing version field')
        try:
            return PolicyConfig.model_validate(data)
        except PydanticValidationError as e:
            raise FailedCheckError(f"config: {_first_error(e)}") from e


class BundleDecoder(Decoder):
    file_type = FileType.BUNDLE
    name = 'bundle'

    def parse(self, content: bytes) -> Any:
        return decode_bundle(content)


class KEVJSONDecoder(JSONModelDecoder):
    file_type = FileType.KEV
    name = 'kev-json'
    model = KEVCatalog

    def check(self, obj: KEVCatalog) -> None:
        if not obj.title:
            raise FailedCheckError('kev: missing title')
        if not obj.catalog_version:
            raise FailedCheckError('kev: missing catalog version')
        if not obj.vulnerabilities:
            raise FailedCheckError('kev: missing vulnerabilities')


class KEVCSVDecoder(Decoder):
    file_type = FileType.KEV
    name = 'kev-csv'

    def parse(self, content: bytes) -> Any:
        try:
            text = content.decode('utf-8-sig')
        except UnicodeDecodeError as e:
            raise EncodingError(f"kev-csv: {e}") from e

        try:
            rows = list(csv.reader(io.StringIO(text)))
        except csv.Error as e:
            raise EncodingError(f"kev-csv: {e}") from e
        if not rows or [h.strip() for h in rows[0]] != KEV_CSV_HEADER:
            raise EncodingError('kev-csv: invalid header')

        vulnerabilities = []
        for line_number, row in enumerate(rows[1:], start=2):
            if not row:
                continue
            if len(row) != len(KEV_CSV_HEADER):
                raise EncodingError(
                    f"kev-csv: line {line_number} has {len(row)} fields, "
                    f"expected {len(KEV_CSV_HEADER)}",
                )
            vulnerabilities.append(
                KEVVulnerability.model_validate(dict(zip(KEV_CSV_HEADER, row))),
            )
        return KEVCatalog(
            title='CISA KEV Catalog from local CSV file',
            catalog_version='N/A',
            count=len(vulnerabilities),
            vulnerabilities=vulnerabilities,
        )


def _first_error(e: PydanticValidationError) -> str:
    err = e.errors()[0]
    location = '.'.join(str(part) for part in err['loc'])
    return f"{location}: {err['msg']}" if location else err['msg']


def standard_decoders() -> list[Decoder]:
    """Fresh decoders for every artifact family a bundle may carry."""
    return [
        GrypeDecoder(),
        SemgrepDecoder(),
        GitleaksDecoder(),
        CycloneDXDecoder(),
        ConfigDecoder(),
        BundleDecoder(),
    ]


def kev_decoders() -> list[Decoder]:
    return [KEVJSONDecoder(), KEVCSVDecoder()]
