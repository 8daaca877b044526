"""Household survey schema — the canonical record shape.

Each field declares a *kind* that selects its coercer and fallback:

  identity  free text, blank when absent ("data not collected")
  text      free text, "N/A" when absent ("collected but unspecified")
  integer   counts and years (truncated)
  number    currency and quantities
  boolean   yes/no practices

HEADER_ALIASES maps normalized header spellings (see
``tablecast.normalize.headers.normalize_header``) to canonical field names.
Survey exports carry the full question text as the column header, so most
aliases are collapsed questions. Every field's own lowercase name is added
automatically.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

FieldKind = Literal["identity", "text", "integer", "number", "boolean"]


@dataclass(frozen=True)
class FieldSpec:
    """A single canonical field.

    Attributes:
        name: camelCase field name used in every normalized record.
        kind: Coercion kind (see module docstring).
        description: Human-readable meaning; sent to the extraction model.
    """

    name: str
    kind: FieldKind
    description: str


FIELDS: tuple[FieldSpec, ...] = (
    # Identity
    FieldSpec("unitName", "identity", "Name of the unit or group the respondent belongs to"),
    FieldSpec("name", "identity", "Name of the respondent"),
    FieldSpec("location", "identity", "Address or location of the residence"),
    # Household
    FieldSpec("familyMembers", "integer", "Number of family members"),
    FieldSpec("houseType", "text", "Type of house (e.g. Owned, Rented)"),
    FieldSpec("houseStructure", "text", "House structure (e.g. 2BHK, 3BHK or more)"),
    FieldSpec("totalFloorArea", "integer", "Total floor area in sq. ft."),
    FieldSpec("yearOfConstruction", "integer", "Year the house was built"),
    # Bills
    FieldSpec("avgMonthlyBill", "number", "Average monthly electricity bill in Rupees"),
    FieldSpec("avgMonthlyWaterBill", "number", "Average monthly water bill in Rupees"),
    FieldSpec("avgMonthlyVehicleCost", "number", "Average monthly vehicle fuel cost in Rupees"),
    # Energy practices
    FieldSpec("useWindowFilms", "boolean", "Uses reflective window films to reduce heat"),
    FieldSpec("hasEnergyEfficientAppliances", "boolean", "Has BEE star rated appliances"),
    FieldSpec("unplugDevicesWhenNotinUse", "boolean", "Unplugs devices when not in use"),
    FieldSpec("usePowerStrip", "boolean", "Uses a power strip for multiple devices"),
    FieldSpec("cleanRefrigeratorCoils", "boolean", "Cleans refrigerator coils and fans regularly"),
    FieldSpec("hasSolarPanels", "boolean", "Has solar panels installed"),
    FieldSpec("cookingFuel", "text", "Primary fuel used for cooking"),
    # Utility & household details
    FieldSpec("consumerNumber", "text", "Electricity consumer number"),
    FieldSpec("connectionType", "text", "Electricity connection type (Single or Three phase)"),
    FieldSpec("waterSource", "text", "Source of water (e.g. Pipeline, Borewell)"),
    FieldSpec("solarPanelCapacity", "number", "Installed solar panel capacity in kW"),
    FieldSpec("energyEfficientAppliancesDetails", "text", "Which energy efficient appliances are owned"),
    # Energy & water saving habits
    FieldSpec("switchOffWhenNotInUse", "boolean", "Switches off lights and fans when not in use"),
    FieldSpec("useDaylight", "boolean", "Uses daylight instead of artificial lighting"),
    FieldSpec("waterHeatingMethod", "text", "Method used to heat water"),
    FieldSpec("useBucketBathing", "boolean", "Uses bucket bathing instead of shower"),
    FieldSpec("fixLeakingTaps", "boolean", "Checks and fixes leaking taps regularly"),
    FieldSpec("washClothesInColdWater", "boolean", "Washes clothes in cold water"),
    FieldSpec("clothesDryingMethod", "text", "How clothes are dried"),
    FieldSpec("ironingFrequency", "text", "How often clothes are ironed"),
    # Attitudes & awareness
    FieldSpec("awareOfSolarSubsidy", "boolean", "Aware of government solar subsidies"),
    FieldSpec("preferEnergySavingAppliances", "boolean", "Prefers energy saving appliances when buying"),
    FieldSpec("biggestElectricityConcern", "text", "Biggest concern about electricity use"),
    FieldSpec("interestedInEnergyTips", "boolean", "Interested in receiving energy saving tips"),
    FieldSpec("additionalComments", "text", "Any additional comments"),
    # Cooking details
    FieldSpec("lpgCylindersPerMonth", "number", "LPG cylinders used per month"),
    FieldSpec("cookingElectricityKwhPerMonth", "number", "Electricity used for cooking per month in kWh"),
    FieldSpec("otherCookingFuels", "text", "Other fuels used for cooking"),
    FieldSpec("cookingAppliances", "text", "Cooking appliances used"),
    FieldSpec("cookingTimeBreakfastHours", "number", "Hours spent cooking breakfast"),
    FieldSpec("cookingTimeLunchHours", "number", "Hours spent cooking lunch"),
    FieldSpec("cookingTimeDinnerHours", "number", "Hours spent cooking dinner"),
    # Vehicle details
    FieldSpec("numTwoWheelers", "integer", "Number of two-wheelers"),
    FieldSpec("numCars", "integer", "Number of cars"),
    FieldSpec("numElectricVehicles", "integer", "Number of electric vehicles"),
    FieldSpec("vehicleFuelType", "text", "Fuel type used by vehicles"),
    FieldSpec("twoWheelerFuelConsumptionLiters", "number", "Monthly two-wheeler fuel consumption in litres"),
    FieldSpec("carFuelConsumptionLiters", "number", "Monthly car fuel consumption in litres"),
    FieldSpec("twoWheelerDistanceKm", "number", "Monthly two-wheeler distance in km"),
    FieldSpec("carDistanceKm", "number", "Monthly car distance in km"),
)

FIELD_NAMES: tuple[str, ...] = tuple(f.name for f in FIELDS)

# Survey spellings → canonical field. Keys are already normalized
# (alphanumeric, lowercase). "n02" variants are OCR reading O as 0.
_SURVEY_ALIASES: dict[str, str] = {
    # familyMembers
    "numberoffamilymembers": "familyMembers",
    "familysize": "familyMembers",
    "noofmembers": "familyMembers",
    # totalFloorArea
    "totalfloorareasqft": "totalFloorArea",
    "totalfloorareasqftmifknown": "totalFloorArea",
    "floorarea": "totalFloorArea",
    # yearOfConstruction
    "constructionyear": "yearOfConstruction",
    "yearbuilt": "yearOfConstruction",
    # avgMonthlyBill
    "averagemonthlyelectricitybill": "avgMonthlyBill",
    "whatisyouraveragemonthlyelectricitybillinrupees": "avgMonthlyBill",
    "monthlybill": "avgMonthlyBill",
    "electricitybill": "avgMonthlyBill",
    # avgMonthlyWaterBill
    "averagemonthlywaterbill": "avgMonthlyWaterBill",
    "waterbill": "avgMonthlyWaterBill",
    "monthlywaterbill": "avgMonthlyWaterBill",
    # avgMonthlyVehicleCost
    "averagemonthlyvehiclecost": "avgMonthlyVehicleCost",
    "vehiclecost": "avgMonthlyVehicleCost",
    "monthlyfuelcost": "avgMonthlyVehicleCost",
    # useWindowFilms
    "doyouusereflectivewindowfilmstoreduceheat": "useWindowFilms",
    "reflectivewindowfilms": "useWindowFilms",
    # hasEnergyEfficientAppliances
    "doyouhaveenergyefficientbeestarappliancessyes1no2": "hasEnergyEfficientAppliances",
    "doyouhaveenergyefficientbeestarappliancessyes1n02": "hasEnergyEfficientAppliances",
    "energyefficientappliances": "hasEnergyEfficientAppliances",
    "doyouhaveenergysavingappliances": "hasEnergyEfficientAppliances",
    # unplugDevicesWhenNotinUse
    "doyouunplugdeviceswhennotinuseyes1no2": "unplugDevicesWhenNotinUse",
    "doyouunplugdeviceswhennotinuseyes1n02": "unplugDevicesWhenNotinUse",
    "doyouunplugdeviceswhennotinuse": "unplugDevicesWhenNotinUse",
    # usePowerStrip
    "doyouuseapowerstripformultipledevices": "usePowerStrip",
    "powerstrip": "usePowerStrip",
    # cleanRefrigeratorCoils
    "doyoucleanrefrigeratorcoilsandfansregularlytoimproveefficiency": "cleanRefrigeratorCoils",
    "cleanfridgecoils": "cleanRefrigeratorCoils",
    # hasSolarPanels
    "doyouhavesolarpanelsinstalled": "hasSolarPanels",
    "solarpanels": "hasSolarPanels",
    "solarpanelinstalled": "hasSolarPanels",
    # cookingFuel
    "whatallfuelsareusedforcookingplprovidetheirusagetime": "cookingFuel",
    "whatallfuelsareusedforcooking": "cookingFuel",
    "fuelusedforcooking": "cookingFuel",
    "fuelsforcooking": "cookingFuel",
    # consumerNumber
    "consumernumber": "consumerNumber",
    "consumerno": "consumerNumber",
    # connectionType
    "typeofconnection1single2three": "connectionType",
    "typeofconnection": "connectionType",
    "connection": "connectionType",
    # waterSource
    "sourceofwater": "waterSource",
    # solarPanelCapacity
    "solarcapacity": "solarPanelCapacity",
    "solarpanelcapacitykw": "solarPanelCapacity",
    # energyEfficientAppliancesDetails
    "whichenergyefficientappliancesdoyouhave": "energyEfficientAppliancesDetails",
    # switchOffWhenNotInUse
    "doyouswitchofflightsfanswhennotinuseyes1no2": "switchOffWhenNotInUse",
    "doyouswitchofflightsfanswhennotinuseyes1n02": "switchOffWhenNotInUse",
    "doyouswitchofflightsfanswhennotinuse": "switchOffWhenNotInUse",
    "switchofflightsfans": "switchOffWhenNotInUse",
    # useDaylight
    "doyouusedaylightinsteadofelectriclights": "useDaylight",
    "usenaturallight": "useDaylight",
    # waterHeatingMethod
    "howdoyouheatwater": "waterHeatingMethod",
    "waterheating": "waterHeatingMethod",
    # useBucketBathing
    "doyouusebucketbathing": "useBucketBathing",
    "bucketbathing": "useBucketBathing",
    # fixLeakingTaps
    "doyoucheckandfixleakingtapsregularlyyes1no2": "fixLeakingTaps",
    "doyoucheckandfixleakingtapsregularlyyes1n02": "fixLeakingTaps",
    "doyoucheckandfixleakingtapsregularly": "fixLeakingTaps",
    "fixleakingtaps": "fixLeakingTaps",
    # washClothesInColdWater
    "doyouwashclothesincoldwateryes1no2": "washClothesInColdWater",
    "doyouwashclothesincoldwateryes1n02": "washClothesInColdWater",
    "doyouwashclothesincoldwater": "washClothesInColdWater",
    # clothesDryingMethod
    "howdoyoudryclothes": "clothesDryingMethod",
    # ironingFrequency
    "howoftendoyouironclothes": "ironingFrequency",
    # awareOfSolarSubsidy
    "areyouawareofsolarsubsidies": "awareOfSolarSubsidy",
    "solarsubsidyawareness": "awareOfSolarSubsidy",
    # preferEnergySavingAppliances
    "doyoupreferenergysavingappliances": "preferEnergySavingAppliances",
    # biggestElectricityConcern
    "whatisyourbiggestconcernaboutelectricity": "biggestElectricityConcern",
    # interestedInEnergyTips
    "wouldyouliketoreceiveenergysavingtips": "interestedInEnergyTips",
    # additionalComments
    "comments": "additionalComments",
    "remarks": "additionalComments",
    # cooking details
    "lpgcylinderspermonth": "lpgCylindersPerMonth",
    "noofcylinderspermonth": "lpgCylindersPerMonth",
    "cookingelectricitykwh": "cookingElectricityKwhPerMonth",
    "othercookingfuels": "otherCookingFuels",
    "appliancesusedforcooking": "cookingAppliances",
    "breakfastcookingtime": "cookingTimeBreakfastHours",
    "lunchcookingtime": "cookingTimeLunchHours",
    "dinnercookingtime": "cookingTimeDinnerHours",
    # vehicles
    "numberoftwowheelers": "numTwoWheelers",
    "twowheelers": "numTwoWheelers",
    "numberofcars": "numCars",
    "cars": "numCars",
    "numberofelectricvehicles": "numElectricVehicles",
    "electricvehicles": "numElectricVehicles",
    "fueltype": "vehicleFuelType",
    "twowheelerfuelconsumption": "twoWheelerFuelConsumptionLiters",
    "carfuelconsumption": "carFuelConsumptionLiters",
    "twowheelerdistance": "twoWheelerDistanceKm",
    "cardistance": "carDistanceKm",
}

HEADER_ALIASES: dict[str, str] = {
    **{name.lower(): name for name in FIELD_NAMES},
    **_SURVEY_ALIASES,
}
