from .signatures import SignatureStore, HEADER_SIZE, encode_record, decode_record

__all__ = ["SignatureStore", "HEADER_SIZE", "encode_record", "decode_record"]
