import logging
from dataclasses import dataclass, field

from backend.jjm.data_loader import (
    ImportFileError,
    clean_id,
    detect_region_from_sheet_name,
    iter_scheme_sheets,
    is_blank,
)

logger = logging.getLogger(__name__)

DATA_COLUMN_GROUPS = {
    "villages": {
        "number_of_village", "total_villages_integrated", "fully_completed_villages",
        "no_of_functional_village",
    },
    "esr": {"total_number_of_esr", "total_esr_integrated", "no_fully_completed_esr"},
    "components": {
        "flow_meters_connected", "pressure_transmitter_connected", "residual_chlorine_analyzer_connected",
    },
    "status": {"fully_completion_scheme_status", "scheme_functional_status"},
}


@dataclass
class ValidationResult:
    is_valid: bool
    message: str
    sheets: list = field(default_factory=list)
    scheme_id_column_present: bool = False
    required_columns_present: bool = False
    schemes_found: int = 0
    regions_found: list = field(default_factory=list)

    def to_dict(self):
        return {
            "isValid": self.is_valid,
            "message": self.message,
            "details": {
                "sheets": self.sheets,
                "schemeIdColumnPresent": self.scheme_id_column_present,
                "requiredColumnsPresent": self.required_columns_present,
                "schemesFound": self.schemes_found,
                "regionsFound": self.regions_found,
            },
        }


def validate_scheme_workbook(path) -> ValidationResult:
    """Check that a scheme status workbook can be imported before importing it."""
    try:
        sheets = list(iter_scheme_sheets(path))
    except ImportFileError as e:
        return ValidationResult(is_valid=False, message=str(e))

    region_sheets, regions = [], []
    scheme_id_present = required_present = False
    schemes_found = 0

    for sheet in sheets:
        region = detect_region_from_sheet_name(sheet.sheet_name, allow_unlisted=False)
        if not region:
            continue
        region_sheets.append(sheet.sheet_name)
        if region not in regions:
            regions.append(region)

        fields = set(sheet.mapping.values())
        if "scheme_id" not in fields:
            continue
        scheme_id_present = True

        data_fields = set().union(*DATA_COLUMN_GROUPS.values())
        for record in sheet.records:
            if not clean_id(record.get("scheme_id")):
                continue
            schemes_found += 1
            if any(not is_blank(record.get(f)) for f in data_fields & fields):
                required_present = True

    result = ValidationResult(
        is_valid=False,
        message="",
        sheets=region_sheets or [s.sheet_name for s in sheets],
        scheme_id_column_present=scheme_id_present,
        required_columns_present=required_present,
        schemes_found=schemes_found,
        regions_found=regions,
    )

    if not region_sheets:
        result.message = (
            "No region sheets found in the Excel file. Expected sheets containing Amravati, Nashik, "
            "Nagpur, Pune, Konkan, CS (Chhatrapati Sambhajinagar), or Sambhajinagar."
        )
    elif not scheme_id_present:
        result.message = 'No Scheme ID column found in any sheet. Expected column name "Scheme ID" or similar.'
    elif not required_present:
        result.message = "Missing required data columns. Expected columns for Villages, ESR, Flow Meters, etc."
    elif schemes_found == 0:
        result.message = "No scheme data found in the Excel file."
    else:
        result.is_valid = True
        result.message = (
            f"Excel file valid. Found {schemes_found} schemes across {len(region_sheets)} region sheets "
            f"({', '.join(regions)})."
        )

    logger.info(f"🧾 Workbook validation: {result.message}")
    return result
