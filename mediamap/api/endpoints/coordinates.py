"""Free-text coordinate parsing, used by the manual entry form."""

from fastapi import APIRouter

from mediamap.geo.parser import default_parser, ocr_parser
from mediamap.schemas.coordinates import ParseRequest, ParseResponse

router = APIRouter(prefix="/coordinates", tags=["Coordinates"])


@router.post("/parse", response_model=ParseResponse)
async def parse_coordinates(body: ParseRequest) -> ParseResponse:
    parser = ocr_parser if body.ocr else default_parser
    result = parser.parse_detailed(body.text)
    if result is None:
        return ParseResponse(found=False)
    return ParseResponse(
        found=True,
        latitude=result.pair.latitude,
        longitude=result.pair.longitude,
        template=result.template,
    )
