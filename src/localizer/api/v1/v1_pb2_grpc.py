"""Client and server classes for the ``api.v1.LocalizerService`` gRPC service."""

import grpc

from . import v1_pb2


class LocalizerServiceStub:
    """Client stub; both calls return a stream of ``ConsoleResponse``."""

    def __init__(self, channel):
        self.ExposeService = channel.unary_stream(
            f"/{v1_pb2.SERVICE_NAME}/ExposeService",
            request_serializer=v1_pb2.ExposeServiceRequest.SerializeToString,
            response_deserializer=v1_pb2.ConsoleResponse.FromString,
        )
        self.StopExpose = channel.unary_stream(
            f"/{v1_pb2.SERVICE_NAME}/StopExpose",
            request_serializer=v1_pb2.StopExposeRequest.SerializeToString,
            response_deserializer=v1_pb2.ConsoleResponse.FromString,
        )


class LocalizerServiceServicer:
    """Server interface; subclasses implement the streaming calls."""

    def ExposeService(self, request, context):
        context.set_code(grpc.StatusCode.UNIMPLEMENTED)
        context.set_details("Method not implemented!")
        raise NotImplementedError("Method not implemented!")

    def StopExpose(self, request, context):
        context.set_code(grpc.StatusCode.UNIMPLEMENTED)
        context.set_details("Method not implemented!")
        raise NotImplementedError("Method not implemented!")


def add_LocalizerServiceServicer_to_server(servicer, server):
    rpc_method_handlers = {
        "ExposeService": grpc.unary_stream_rpc_method_handler(
            servicer.ExposeService,
            request_deserializer=v1_pb2.ExposeServiceRequest.FromString,
            response_serializer=v1_pb2.ConsoleResponse.SerializeToString,
        ),
        "StopExpose": grpc.unary_stream_rpc_method_handler(
            servicer.StopExpose,
            request_deserializer=v1_pb2.StopExposeRequest.FromString,
            response_serializer=v1_pb2.ConsoleResponse.SerializeToString,
        ),
    }
    generic_handler = grpc.method_handlers_generic_handler(
        v1_pb2.SERVICE_NAME, rpc_method_handlers
    )
    server.add_generic_rpc_handlers((generic_handler,))
