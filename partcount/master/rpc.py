"""
gRPC wiring for the PartitionCounter service.

Messages are JSON objects (UTF-8), registered through grpc's generic method
handlers instead of generated protobuf stubs. Every method is unary-unary:

    CreateTable  {name, num_partitions, strict}  -> {created, name, num_partitions}
    Ingest       {name, items}                   -> {accepted, total}
    Snapshot     {name}                          -> {name, counts, total, closed, num_partitions}
    Close        {name}                          -> {closed}
    ListTables   {}                              -> {tables}
"""

import json

import grpc


SERVICE_NAME = 'partcount.PartitionCounter'

METHODS = ('CreateTable', 'Ingest', 'Snapshot', 'Close', 'ListTables')


def encode_message(message):
    return json.dumps(message, separators=(',', ':'), ensure_ascii=False).encode('utf-8')


def decode_message(data):
    if not data:
        return {}
    return json.loads(data.decode('utf-8'))


def method_path(name):
    return f'/{SERVICE_NAME}/{name}'


def add_PartitionCounterServicer_to_server(servicer, server):
    """Register every METHODS entry of servicer on a grpc.Server"""
    handlers = {
        name: grpc.unary_unary_rpc_method_handler(
            getattr(servicer, name),
            request_deserializer=decode_message,
            response_serializer=encode_message,
        )
        for name in METHODS
    }
    server.add_generic_rpc_handlers(
        (grpc.method_handlers_generic_handler(SERVICE_NAME, handlers),)
    )


class PartitionCounterStub:
    """Client-side callables, one per RPC method"""

    def __init__(self, channel):
        self.CreateTable = self._method(channel, 'CreateTable')
        self.Ingest = self._method(channel, 'Ingest')
        self.Snapshot = self._method(channel, 'Snapshot')
        self.Close = self._method(channel, 'Close')
        self.ListTables = self._method(channel, 'ListTables')

    @staticmethod
    def _method(channel, name):
        return channel.unary_unary(
            method_path(name),
            request_serializer=encode_message,
            response_deserializer=decode_message,
        )
