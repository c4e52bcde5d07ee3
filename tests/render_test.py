import json

from rich.console import Console

from gatecheck.core.render import bundle_table
from gatecheck.core.render import gitleaks_table
from gatecheck.core.render import grype_table
from gatecheck.core.render import kev_table
from gatecheck.models.bundle import Bundle
from gatecheck.models.kev import KEVVulnerability
from gatecheck.services.decoders import GitleaksDecoder
from gatecheck.services.decoders import GrypeDecoder


def render(table) -> str:
    console = Console(record=True, width=200)
    console.print(table)
    return console.export_text()


def test_grype_cells_are_printed_literally(grype_doc):
    grype_doc['matches'][0]['artifact']['name'] = '[red]evil[/]'
    grype_doc['matches'][1]['vulnerability']['severity'] = '[/bold]'
    report = GrypeDecoder().decode(json.dumps(grype_doc).encode())
    output = render(grype_table(report))
    assert '[red]evil[/]' in output
    assert '[/bold]' in output


def test_gitleaks_secret_with_brackets():
    content = json.dumps([{'RuleID': 'generic-api-key', 'File': 'a.env', 'Secret': 'token[/]'}])
    report = GitleaksDecoder().decode(content.encode())
    assert 'token[/]' in render(gitleaks_table(report))


def test_kev_vulnerability_name_with_markup():
    entry = KEVVulnerability.model_validate({
        'cveID': 'CVE-2023-0002',
        'vulnerabilityName': 'curl [bold]Heap[/bold] Overflow',
        'dateAdded': '2024-01-10',
    })
    output = render(kev_table([entry], '2024.01.30'))
    assert 'curl [bold]Heap[/bold] Overflow' in output
    assert '2024-01-10' in output


def test_bundle_label_with_markup():
    output = render(bundle_table(Bundle({'[green]report[/].json': b'{}'})))
    assert '[green]report[/].json' in output
