"""Request and response models exchanged with the transport layer."""
