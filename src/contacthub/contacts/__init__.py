from contacthub.contacts.models import Contact

__all__ = ["Contact"]
