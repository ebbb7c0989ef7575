from __future__ import annotations

import pytest

from rhine.assembler import TextSource, assemble
from rhine.models import DisasterRecord

HEADER = (
    "Dis No,Hazard  Group,Hazard Type,Specific Hazard Name,Hazard Type Final,ISO,"
    "Start Year,Start Month,Start Day,Event Season,Region,Country,"
    "Total Deaths,No. Affected,Total Economic Loss,Notes"
)

ALB_TEXT = "\r\n".join([
    HEADER,
    'HYDRO-20230115-WBTC-ALB-0001,Hydrological Hazards,Flood,Riverine flood,flood,ALB,'
    '2023,1,15,Winter,Western Balkans,Albania,2,150,"$1,250,000 USD",Heavy rain',
    'GEO-20230610-WBTC-ALB-0002,Geophysical Hazards,Earthquake,Ground movement,earthquake,ALB,'
    '2023,6,10,Summer,Western Balkans,Albania,N/A,#N/A,-,"Notes with, comma"',
    'HYDRO-20230720-WBTC-ALB-0003,Hydrological Hazards,Flood,Flash flood,,ALB,'
    '2023,7,20,Summer,Western Balkans,Albania,0,40,5000,"Line one',
    'continued line two"',
    "",
])

SRB_TEXT = "\n".join([
    HEADER,
    "MET-20220301-WBTC-SRB-0001,Meteorological Hazards,Storm,Windstorm,storm,SRB,"
    "2022,3,1,Spring,Western Balkans,Serbia,1,10,,",
    "CLIM-20220805-WBTC-SRB-0002,Climatological Hazards,wildfire,Wildfire,,SRB,"
    "2022,8,5,Summer,Western Balkans,Serbia,,,,",
])

GEO_TEXT = "\n".join([
    HEADER,
    "HYDRO-20210410-SC-GEO-0001,Geophysical Hazards,Landslide,Landslide,,GEO,"
    "2021,4,10,Spring,South Caucasus,Georgia,3,20,1000,",
])


def make_record(dis_no: str, hazard_type: str = "Flood", country_name: str = "Albania", **kw) -> DisasterRecord:
    return DisasterRecord(dis_no=dis_no, hazard_type=hazard_type, country_name=country_name, **kw)


@pytest.fixture
def sources():
    return [
        TextSource(name="Serbia", iso="SRB", text=SRB_TEXT),
        TextSource(name="Georgia", iso="GEO", text=GEO_TEXT),
        TextSource(name="Albania", iso="ALB", text=ALB_TEXT),
    ]


@pytest.fixture
def assembly(sources):
    return assemble(sources)


@pytest.fixture
def countries(assembly):
    return assembly.countries


@pytest.fixture
def records(assembly):
    return assembly.records()
