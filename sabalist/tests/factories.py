import io

from PIL import Image

from sabalist.stores.documents import SERVER_TIMESTAMP


def make_jpeg(width: int = 64, height: int = 48, color: str = "red") -> bytes:
    output = io.BytesIO()
    Image.new("RGB", (width, height), color).save(output, format="JPEG")
    return output.getvalue()


def listing_document(**overrides):
    document = {
        "title": "Untitled",
        "description": "",
        "price": 0.0,
        "currency": "USD",
        "category": "Electronics",
        "subcategory": "",
        "location": "Nairobi, Kenya",
        "phoneNumber": "+254700000000",
        "userId": "user-1",
        "images": [],
        "coverImage": "",
        "videoUrl": "",
        "status": "active",
        "views": 0,
        "soldAt": None,
        "createdAt": SERVER_TIMESTAMP,
        "updatedAt": SERVER_TIMESTAMP,
    }
    document.update(overrides)
    return document
