from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field

CVE_RECORD_URL = 'https://www.cve.org/CVERecord?id={}'


class KEVVulnerability(BaseModel):
    cve_id: str = Field(alias='cveID', default='')
    vendor_project: str = Field(alias='vendorProject', default='')
    product: str = ''
    vulnerability_name: str = Field(alias='vulnerabilityName', default='')
    date_added: str = Field(alias='dateAdded', default='')
    short_description: str = Field(alias='shortDescription', default='')
    required_action: str = Field(alias='requiredAction', default='')
    due_date: str = Field(alias='dueDate', default='')
    notes: str = ''

    model_config = ConfigDict(extra='ignore', populate_by_name=True)

    @property
    def link(self) -> str:
        return CVE_RECORD_URL.format(self.cve_id)


class KEVCatalog(BaseModel):
    """CISA Known Exploited Vulnerabilities catalog."""
    title: str = ''
    catalog_version: str = Field(alias='catalogVersion', default='')
    date_released: str = Field(alias='dateReleased', default='')
    count: int = 0
    vulnerabilities: list[KEVVulnerability] = Field(default_factory=list)

    model_config = ConfigDict(extra='ignore', populate_by_name=True)
