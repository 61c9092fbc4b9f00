"""
Mock document extraction service for simulating invoice OCR/AI extraction
"""

from typing import Dict, Optional


class MockExtractionService:
    """Mock service that guesses invoice fields from the uploaded file name"""

    def __init__(self):
        # (keywords, extracted fields); first match wins
        self.templates = [
            (
                ("medical", "hospital", "doctor"),
                {
                    "title": "Medical Services Invoice",
                    "description": "Consultation and routine checkup services",
                    "claimantName": "John Doe",
                    "type": "Health",
                },
            ),
            (
                ("repair", "auto", "car"),
                {
                    "title": "Vehicle Repair Invoice",
                    "description": "Bumper replacement and paint work",
                    "claimantName": "Alice Smith",
                    "type": "Auto",
                },
            ),
            (
                ("home", "property", "roof"),
                {
                    "title": "Home Repair Invoice",
                    "description": "Roof leak repair and maintenance",
                    "claimantName": "Bob Jones",
                    "type": "Home",
                },
            ),
        ]
        self.fallback = {
            "title": "General Invoice",
            "description": "Extracted from uploaded document",
            "claimantName": "Unknown Client",
            "type": "General",
        }

    def extract_invoice_fields(
        self, filename: str, content_type: Optional[str] = None
    ) -> Dict[str, str]:
        """
        Mock extraction of invoice fields
        """
        name = (filename or "").lower()
        for keywords, fields in self.templates:
            if any(keyword in name for keyword in keywords):
                return dict(fields)
        return dict(self.fallback)


# Global instance
mock_extraction_service = MockExtractionService()
