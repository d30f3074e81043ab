import asyncio
import threading
import unittest
from io import BytesIO
from pathlib import Path
from tempfile import TemporaryDirectory

from PIL import Image

from imgnorm.errors import ListingValidationError
from imgnorm.listing_service import ImageFile, ListingService, validate_listing_form
from imgnorm.listing_store import ListingStore
from imgnorm.normalizer import ImageNormalizer


def _png(color, size=(32, 24)) -> bytes:
    buf = BytesIO()
    Image.new("RGB", size, color).save(buf, format="PNG")
    return buf.getvalue()


class RecordingBlobStore:
    def __init__(self):
        self.uploads = []
        self._lock = threading.Lock()

    def upload(self, key, data, content_type, metadata=None):
        with self._lock:
            self.uploads.append((key, data, content_type, metadata))
        return f"https://blobs.example/{key}"


class TestValidateListingForm(unittest.TestCase):
    def test_trims_and_coerces(self):
        title, description, price = validate_listing_form("  Mythic #120 ", " 70 skins ", "199.00")
        self.assertEqual((title, description, price), ("Mythic #120", "70 skins", 199.0))

    def test_rejects_bad_fields(self):
        bad_forms = [
            ("", "desc", 10),
            ("title", "   ", 10),
            ("title", "desc", ""),
            ("title", "desc", "abc"),
            ("title", "desc", 0),
            ("title", "desc", "nan"),
            ("x" * 101, "desc", 10),
            ("title", "y" * 2001, 10),
        ]
        for form in bad_forms:
            with self.subTest(form=form[:2]), self.assertRaises(ListingValidationError):
                validate_listing_form(*form)


class TestListingService(unittest.TestCase):
    def setUp(self):
        self.tmpdir = TemporaryDirectory()
        self.addCleanup(self.tmpdir.cleanup)
        self.blob_store = RecordingBlobStore()
        self.listing_store = ListingStore(Path(self.tmpdir.name) / "listings.json")
        self.service = ListingService(
            normalizer=ImageNormalizer(),
            blob_store=self.blob_store,
            listing_store=self.listing_store,
        )

    def test_create_listing_uploads_normalized_images(self):
        files = [ImageFile("front.png", _png((255, 0, 0))), ImageFile("back.png", _png((0, 0, 255)))]
        listing, outcomes = asyncio.run(
            self.service.create_listing("u1", "Mythic #120", "70 skins", "199", files)
        )

        self.assertTrue(all(o.ok for o in outcomes))
        self.assertEqual(listing.imageUrls, [o.url for o in outcomes])
        self.assertRegex(outcomes[0].key, r"^listings/u1/\d+_0_[0-9a-z]+_front\.jpg$")
        self.assertRegex(outcomes[1].key, r"^listings/u1/\d+_1_[0-9a-z]+_back\.jpg$")

        for key, data, content_type, metadata in self.blob_store.uploads:
            self.assertEqual(content_type, "image/jpeg")
            self.assertTrue(data.startswith(b"\xff\xd8"))
            self.assertLessEqual(len(data), 204800)
            self.assertIn(metadata["originalName"], ("front.png", "back.png"))

        stored = self.listing_store.get_listing(listing.id)
        self.assertEqual(stored.userId, "u1")
        self.assertEqual(stored.price, 199.0)
        self.assertEqual(stored.status, "active")

    def test_bad_file_does_not_abort_siblings(self):
        files = [
            ImageFile("ok1.png", _png((10, 10, 10))),
            ImageFile("notes.jpg", b"plain text, not an image"),
            ImageFile("ok2.png", _png((20, 20, 20))),
        ]
        listing, outcomes = asyncio.run(
            self.service.create_listing("u1", "Title", "Desc", 10, files)
        )

        self.assertEqual([o.ok for o in outcomes], [True, False, True])
        self.assertEqual(outcomes[1].error_kind, "DecodeError")
        self.assertEqual(outcomes[1].to_dict()["ok"], False)
        self.assertEqual(listing.imageUrls, [outcomes[0].url, outcomes[2].url])
        self.assertEqual(len(self.blob_store.uploads), 2)

    def test_only_first_four_images_are_kept(self):
        files = [ImageFile(f"img{i}.png", _png((i * 30, 0, 0))) for i in range(6)]
        outcomes = asyncio.run(self.service.upload_images("u1", files))

        self.assertEqual([o.filename for o in outcomes], ["img0.png", "img1.png", "img2.png", "img3.png"])
        self.assertEqual(len(self.blob_store.uploads), 4)

    def test_over_budget_image_is_reported(self):
        service = ListingService(
            normalizer=ImageNormalizer(max_bytes=10),
            blob_store=self.blob_store,
            listing_store=self.listing_store,
        )
        outcomes = asyncio.run(service.upload_images("u1", [ImageFile("big.png", _png((1, 2, 3)))]))

        self.assertFalse(outcomes[0].ok)
        self.assertEqual(outcomes[0].error_kind, "CompressionExhausted")
        self.assertEqual(self.blob_store.uploads, [])

    def test_signed_out_or_invalid_form_is_rejected_before_upload(self):
        with self.assertRaises(ListingValidationError):
            asyncio.run(self.service.create_listing("", "T", "D", 5, [ImageFile("a.png", _png((0, 0, 0)))]))
        with self.assertRaises(ListingValidationError):
            asyncio.run(self.service.create_listing("u1", "", "D", 5, [ImageFile("a.png", _png((0, 0, 0)))]))
        self.assertEqual(self.blob_store.uploads, [])
        self.assertEqual(self.listing_store.list_listings(), [])


if __name__ == "__main__":
    unittest.main()
